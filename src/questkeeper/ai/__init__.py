"""AI-assisted suggestions for QuestKeeper.

Character and quest ideas come from a chat model via OpenRouter. Replies
are parsed into suggestion models, which convert into ordinary store drafts.
"""

from questkeeper.ai.client import SuggestionClient, get_openrouter_client
from questkeeper.ai.suggestions import (
    CharacterSuggestion,
    QuestSuggestion,
    build_character_prompt,
    build_quest_prompt,
    parse_character_suggestion,
    parse_quest_suggestion,
    strip_code_fences,
)


__all__ = [
    "CharacterSuggestion",
    "QuestSuggestion",
    "SuggestionClient",
    "build_character_prompt",
    "build_quest_prompt",
    "get_openrouter_client",
    "parse_character_suggestion",
    "parse_quest_suggestion",
    "strip_code_fences",
]
