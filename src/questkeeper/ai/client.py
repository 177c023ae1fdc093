"""OpenRouter client for character and quest suggestions.

Sends the suggestion prompts to an OpenAI-compatible chat completion
endpoint (OpenRouter by default) and parses the replies into suggestion
models. Transient connection failures and rate limits are retried with
exponential backoff; any other API error fails immediately.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from questkeeper.ai.suggestions import (
    CharacterSuggestion,
    QuestSuggestion,
    build_character_prompt,
    build_quest_prompt,
    parse_character_suggestion,
    parse_quest_suggestion,
)
from questkeeper.core.config import AIProviderSettings, get_settings
from questkeeper.core.exceptions import AIConnectionError, AIControlError, ConfigurationError
from questkeeper.core.logging import get_logger


if TYPE_CHECKING:
    from openai import OpenAI
    from openai.types.chat import ChatCompletion
    from tenacity.wait import wait_base

logger = get_logger(__name__)

PROVIDER = "openrouter"


def get_openrouter_client(settings: AIProviderSettings | None = None) -> OpenAI:
    """Get an OpenAI client configured for OpenRouter.

    Args:
        settings: AI provider settings. Defaults to the application settings.

    Returns:
        Configured OpenAI client.

    Raises:
        ConfigurationError: If no API key is configured.
    """
    from openai import OpenAI

    settings = settings or get_settings().ai
    if settings.openrouter_api_key is None or not settings.openrouter_api_key.get_secret_value():
        raise ConfigurationError(
            "OpenRouter API key not configured. Set QUESTKEEPER_OPENROUTER_API_KEY",
            config_key="openrouter_api_key",
        )

    return OpenAI(
        api_key=settings.openrouter_api_key.get_secret_value(),
        base_url=settings.base_url,
        timeout=settings.timeout_seconds,
        max_retries=0,
        default_headers={"X-Title": "QuestKeeper"},
    )


class SuggestionClient:
    """Generates character and quest suggestions with a chat model.

    Attributes:
        model: Model identifier sent with each request.
        temperature: Sampling temperature.
        max_retries: Maximum attempts for a request.
    """

    def __init__(
        self,
        *,
        client: OpenAI | None = None,
        settings: AIProviderSettings | None = None,
        wait: wait_base | None = None,
    ) -> None:
        """Initialize the suggestion client.

        Args:
            client: Preconfigured OpenAI client. Built from settings if omitted.
            settings: AI provider settings. Defaults to the application settings.
            wait: Backoff strategy between retries.
        """
        settings = settings or get_settings().ai
        self._client = client or get_openrouter_client(settings)
        self.model = settings.model
        self.temperature = settings.temperature
        self.max_retries = settings.max_retries
        self._wait = wait or wait_exponential(multiplier=1, min=2, max=10)

        logger.info("SuggestionClient initialized", model=self.model, max_retries=self.max_retries)

    def suggest_character(self) -> CharacterSuggestion:
        """Ask the model for a character idea.

        Raises:
            AIConnectionError: If the provider stays unreachable.
            AIResponseError: If the reply is not a valid character suggestion.
        """
        return parse_character_suggestion(self.complete(build_character_prompt()))

    def suggest_quest(
        self,
        *,
        quest_type: str | None = None,
        setting: str | None = None,
        party_level: int | None = None,
    ) -> QuestSuggestion:
        """Ask the model for a quest idea.

        Raises:
            AIConnectionError: If the provider stays unreachable.
            AIResponseError: If the reply is not a valid quest suggestion.
        """
        prompt = build_quest_prompt(quest_type=quest_type, setting=setting, party_level=party_level)
        return parse_quest_suggestion(self.complete(prompt))

    def complete(self, prompt: str) -> str:
        """Send one prompt, retrying transient failures.

        Args:
            prompt: User prompt text.

        Returns:
            Raw response text.
        """
        for attempt in Retrying(
            retry=retry_if_exception_type(AIConnectionError),
            stop=stop_after_attempt(self.max_retries),
            wait=self._wait,
            reraise=True,
        ):
            with attempt:
                return self._call_api(prompt)
        raise AIConnectionError("No attempt was made", model=self.model, provider=PROVIDER)

    def _call_api(self, prompt: str) -> str:
        from openai import APIConnectionError, APIStatusError, RateLimitError

        messages: list[dict[str, Any]] = [{"role": "user", "content": prompt}]
        try:
            response: ChatCompletion = self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
            )
        except RateLimitError as exc:
            logger.warning("Rate limited by provider", model=self.model)
            raise AIConnectionError(
                f"OpenRouter rate limit exceeded: {exc}",
                model=self.model,
                provider=PROVIDER,
                details={"error_type": "rate_limit"},
            ) from exc
        except APIConnectionError as exc:
            raise AIConnectionError(
                f"Failed to connect to OpenRouter: {exc}",
                model=self.model,
                provider=PROVIDER,
                details={"error_type": "connection"},
            ) from exc
        except APIStatusError as exc:
            raise AIControlError(
                f"OpenRouter API error: {exc}",
                model=self.model,
                provider=PROVIDER,
                details={"status_code": exc.status_code},
            ) from exc

        text = response.choices[0].message.content or ""
        logger.debug("Suggestion response received", model=self.model, response_length=len(text))
        return text


__all__ = [
    "SuggestionClient",
    "get_openrouter_client",
]
