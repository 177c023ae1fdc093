"""Exception hierarchy for QuestKeeper.

Everything raised on purpose derives from :class:`QuestKeeperError`. Keyword
context given to a subclass (``campaign_id=...``, ``collection=...``) lands in
``details`` and is appended to the message as ``[key=value]`` pairs.

Example:
    >>> from questkeeper.core.exceptions import ReferentialIntegrityError
    >>> raise ReferentialIntegrityError("No such campaign", campaign_id="abc")
"""

from __future__ import annotations

from typing import Any


def _with_context(details: dict[str, Any] | None, **context: Any) -> dict[str, Any]:
    """Merge keyword context into a details dict, skipping unset values."""
    merged = dict(details or {})
    for key, value in context.items():
        if value is not None and value != "":
            merged[key] = value
    return merged


class QuestKeeperError(Exception):
    """Root of the QuestKeeper exception tree.

    Attributes:
        message: Human-readable error description.
        details: Structured context, also suitable for log events.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.details:
            return self.message
        pairs = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} [{pairs}]"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation
# =============================================================================


class ConfigurationError(QuestKeeperError):
    """Settings are missing or unusable (e.g. no OpenRouter key)."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, config_key=config_key))


class ValidationError(QuestKeeperError):
    """Input failed a schema or bounds check.

    Args:
        message: Human-readable error description.
        field_name: The offending field, if known.
        invalid_value: The rejected value. Falsy values such as ``0`` are kept.
        details: Extra context.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = _with_context(details, field_name=field_name)
        if invalid_value is not None:
            merged["invalid_value"] = invalid_value
        super().__init__(message, details=merged)


class RecordValidationError(ValidationError):
    """A draft or patch cannot form a valid record.

    Raised before any in-memory state changes, so a rejected add or update
    leaves the collection exactly as it was.
    """

    def __init__(
        self,
        message: str,
        *,
        collection: str | None = None,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            field_name=field_name,
            invalid_value=invalid_value,
            details=_with_context(details, collection=collection),
        )


# =============================================================================
# Store
# =============================================================================


class StoreError(QuestKeeperError):
    """Base for entity store failures."""


class ReferentialIntegrityError(StoreError):
    """A note points at a campaign that does not exist."""

    def __init__(
        self,
        message: str,
        *,
        campaign_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, campaign_id=campaign_id))


class StoreClosedError(StoreError):
    """Mutation attempted after ``close()``."""


class PersistenceError(StoreError):
    """A backend read or write failed.

    Public store mutations never surface this; the collection writer logs it
    and keeps the in-memory state.
    """

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, key=key))


# =============================================================================
# AI Suggestions
# =============================================================================


class AIControlError(QuestKeeperError):
    """Base for failures talking to the suggestion model."""

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_with_context(details, model=model, provider=provider),
        )


class AIConnectionError(AIControlError):
    """The provider could not be reached or rate limited us. Retried."""


class AIResponseError(AIControlError):
    """The model replied with something that is not a usable suggestion.

    Nothing is created from a reply that raised this.
    """


__all__ = [
    "QuestKeeperError",
    "ConfigurationError",
    "ValidationError",
    "RecordValidationError",
    "StoreError",
    "ReferentialIntegrityError",
    "StoreClosedError",
    "PersistenceError",
    "AIControlError",
    "AIConnectionError",
    "AIResponseError",
]
