"""Base model and enums for backend rows.

Every row model inherits from :class:`TrackerBaseModel` which provides:

* ``populate_by_name`` so models accept either the backend column name
  (via ``AliasChoices``) or the Python field name.
* A ``model_validator(mode="before")`` that drops empty strings so the
  field default (usually ``None``) is used instead. The hosted backend
  stores cleared holder names as either ``null`` or ``""``.
* A ``raw`` dict that captures the original row.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator


class AssetKind(StrEnum):
    VEHICLE = "vehicle"
    TOOL = "tool"


class EventType(StrEnum):
    CHECKOUT = "checkout"
    CHECKIN = "checkin"


def parse_timestamp(value: Any) -> datetime | None:
    """Coerce an ISO-8601 string (``Z`` suffix allowed) to an aware UTC datetime.

    Naive values are assumed to be UTC. Returns ``None`` for ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_date(value: Any) -> date | None:
    """Coerce ``YYYY-MM-DD`` (or a full timestamp) to a :class:`date`."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if "T" in text or " " in text:
        parsed = parse_timestamp(text)
        return parsed.date() if parsed is not None else None
    return date.fromisoformat(text)


def format_timestamp(value: datetime) -> str:
    """Serialise a datetime the way the backend stores it (UTC ISO-8601)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


TrackerTimestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]
"""Annotated type that coerces backend timestamps to UTC datetimes."""

TrackerDate = Annotated[date | None, BeforeValidator(parse_date)]


class TrackerBaseModel(BaseModel):
    """Base for backend row models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original backend row."""

    @model_validator(mode="before")
    @classmethod
    def _clean_row(cls, values: Any) -> Any:
        """Drop empty strings and stash the raw row."""
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            cleaned[key] = value
        # Keep an explicitly supplied raw= (kwargs construction).
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
