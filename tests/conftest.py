"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the QuestKeeper test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator

    from questkeeper.core.config import StoreSettings
    from questkeeper.storage.backends import MemoryBackend
    from questkeeper.store.engine import StoreEngine


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from questkeeper.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "QUESTKEEPER_OPENROUTER_API_KEY": "test-openrouter-key",
        "QUESTKEEPER_DEBUG": "true",
        "QUESTKEEPER_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def store_settings() -> StoreSettings:
    """Provide store settings with default rules."""
    from questkeeper.core.config import StoreSettings

    return StoreSettings(base_hit_points=10, cascade_campaign_delete=False)


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def memory_backend() -> MemoryBackend:
    """Provide an empty in-memory backing store."""
    from questkeeper.storage.backends import MemoryBackend

    return MemoryBackend()


@pytest.fixture
def store(memory_backend: MemoryBackend, store_settings: StoreSettings) -> StoreEngine:
    """Provide a store engine over an empty in-memory backend.

    Args:
        memory_backend: Backing store.
        store_settings: Store rules.

    Returns:
        An open StoreEngine with empty collections.
    """
    from questkeeper.store.engine import StoreEngine

    return StoreEngine(memory_backend, settings=store_settings)


# =============================================================================
# Draft Fixtures
# =============================================================================


@pytest.fixture
def sample_character_stats() -> dict[str, int]:
    """Provide sample ability scores keyed by ability name.

    Returns:
        Dictionary of ability scores.
    """
    return {
        "Strength": 16,
        "Dexterity": 14,
        "Constitution": 15,
        "Intelligence": 10,
        "Wisdom": 12,
        "Charisma": 8,
    }


@pytest.fixture
def sample_character_draft(sample_character_stats: dict[str, int]) -> dict[str, Any]:
    """Provide a character draft as the creation wizard submits it."""
    return {
        "name": "Thorin Ironforge",
        "race": "Dwarf",
        "class": "Fighter",
        "level": 1,
        "stats": sample_character_stats,
        "backstory": "Born under the mountain, sworn to reclaim it.",
    }


@pytest.fixture
def sample_campaign_draft() -> dict[str, Any]:
    """Provide a campaign draft."""
    return {
        "name": "Lost Mine of Phandelver",
        "description": "A classic starter adventure on the Sword Coast.",
    }
