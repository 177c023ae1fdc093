"""Base record schema shared by every persisted entity.

Every record carries an opaque ``id`` and creation/update timestamps.
Records are frozen: the store replaces a record wholesale on update rather
than mutating it, so a record handed to a caller is a stable snapshot.

Serialized keys use camelCase (``createdAt``, ``campaignId``) to keep the
persisted JSON compatible with the mobile client's format; Python attribute
names are snake_case and both spellings are accepted on input.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


IMMUTABLE_FIELDS = frozenset({"id", "created_at"})
"""Fields an update patch can never change."""


def utc_now() -> datetime:
    """Get the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def new_record_id() -> str:
    """Generate a new opaque record identifier."""
    return str(uuid4())


def next_timestamp(previous: datetime) -> datetime:
    """Get a timestamp strictly later than ``previous``.

    Clocks with coarse resolution can return the same instant twice, so the
    result is nudged forward by one microsecond when needed.

    Args:
        previous: The timestamp being superseded.

    Returns:
        The current time, or ``previous`` plus one microsecond.
    """
    now = utc_now()
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class Record(BaseModel):
    """Base schema for all persisted entities.

    Attributes:
        id: Unique identifier, generated at creation and never changed.
        created_at: Creation timestamp.
        updated_at: Timestamp of the last mutation; never before created_at.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    id: str = Field(default_factory=new_record_id, description="Unique identifier")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update time")

    @model_validator(mode="after")
    def check_timestamps(self) -> Record:
        """Ensure updated_at never precedes created_at.

        Raises:
            ValueError: If updated_at is earlier than created_at.
        """
        if self.updated_at < self.created_at:
            msg = f"updatedAt ({self.updated_at}) is earlier than createdAt ({self.created_at})"
            raise ValueError(msg)
        return self

    @property
    def search_fields(self) -> tuple[str, ...]:
        """Text fields matched by free-text search."""
        return ()

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase JSON shape."""
        return self.model_dump(mode="json", by_alias=True)


def field_name_map(*models: type[BaseModel]) -> dict[str, str]:
    """Map every accepted input key to its Python field name.

    Args:
        *models: Model classes whose fields should be included.

    Returns:
        Mapping of alias and field name to field name.
    """
    names: dict[str, str] = {}
    for model in models:
        for name, info in model.model_fields.items():
            names[name] = name
            if info.alias:
                names[info.alias] = name
            if isinstance(info.validation_alias, str):
                names[info.validation_alias] = name
            elif isinstance(info.validation_alias, AliasChoices):
                for choice in info.validation_alias.choices:
                    if isinstance(choice, str):
                        names[choice] = name
    return names


def blank_to_none(value: Any) -> Any:
    """Treat an empty string as an unset value.

    Drafts saved by the mobile client start with ``race: ""`` and
    ``class: ""`` until the user picks one.
    """
    if isinstance(value, str) and not value.strip():
        return None
    return value


BlankAsNone = BeforeValidator(blank_to_none)
"""Annotation for optional enum fields that may arrive as ``""``."""


def normalize_keys(data: Mapping[str, Any], names: Mapping[str, str]) -> dict[str, Any]:
    """Rewrite camelCase or snake_case keys to Python field names.

    Unknown keys are kept unchanged so model validation can decide on them.

    Args:
        data: Draft or patch supplied by a caller.
        names: Output of :func:`field_name_map`.

    Returns:
        A new dict keyed by field name.
    """
    return {names.get(key, key): value for key, value in data.items()}


def strip_immutable(data: Mapping[str, Any], fields: Iterable[str] = IMMUTABLE_FIELDS) -> dict[str, Any]:
    """Drop keys that a patch is not allowed to change."""
    blocked = set(fields)
    return {key: value for key, value in data.items() if key not in blocked}


__all__ = [
    "BlankAsNone",
    "IMMUTABLE_FIELDS",
    "Record",
    "blank_to_none",
    "field_name_map",
    "new_record_id",
    "next_timestamp",
    "normalize_keys",
    "strip_immutable",
    "utc_now",
]
