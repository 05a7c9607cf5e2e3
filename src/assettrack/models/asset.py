"""Asset models (vehicles and tools) and registry mutations."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from assettrack.models._base import (
    AssetKind,
    TrackerBaseModel,
    TrackerDate,
    TrackerTimestamp,
    format_timestamp,
)
from assettrack.normalize import safe_float

if TYPE_CHECKING:
    from assettrack.kinds import AssetKindSpec


class Asset(TrackerBaseModel):
    """Current state of one trackable asset.

    ``current_holder`` (and ``checked_out_by`` for tools) is set if and
    only if ``in_use`` is true.
    """

    kind: ClassVar[AssetKind]

    id: str = Field(validation_alias=AliasChoices("id", "asset_id"))
    """Stable external id, printed on the NFC tag."""
    in_use: bool = False
    current_holder: str | None = None
    checked_out_by: str | None = None
    last_holder: str | None = None
    odometer: float | None = None
    location: str | None = None
    last_activity_at: TrackerTimestamp = None
    registration_expires_at: TrackerDate = None
    display_name: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        text = str(value).strip()
        if not text:
            raise ValueError("id must be non-empty")
        return text

    @field_validator("current_holder", "checked_out_by", "last_holder", "location", "display_name", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("odometer", mode="before")
    @classmethod
    def _coerce_odometer(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("in_use", mode="before")
    @classmethod
    def _coerce_in_use(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "t", "yes"}
        return bool(value)

    @property
    def label(self) -> str:
        """Human-readable name, falling back to the id."""
        return self.display_name or self.id

    @property
    def status_text(self) -> str:
        if self.in_use:
            return f"In use by {self.current_holder or 'Unknown'}"
        return "Available"


class Vehicle(Asset):
    """A vehicle row from the ``vehicles`` table."""

    kind: ClassVar[AssetKind] = AssetKind.VEHICLE

    current_holder: str | None = Field(
        default=None,
        validation_alias=AliasChoices("current_driver", "current_holder"),
    )
    """Driver currently holding the vehicle."""
    last_holder: str | None = Field(
        default=None,
        validation_alias=AliasChoices("last_driver", "last_holder"),
    )
    """Last known driver; retained after check-in."""
    odometer: float | None = Field(
        default=None,
        validation_alias=AliasChoices("current_odometer", "odometer"),
    )
    """Odometer reading in km."""
    last_activity_at: TrackerTimestamp = Field(
        default=None,
        validation_alias=AliasChoices("last_activity", "last_activity_at"),
    )
    registration_expires_at: TrackerDate = Field(
        default=None,
        validation_alias=AliasChoices("registration_expiration", "registration_expires_at"),
    )
    display_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("plate_number", "display_name"),
    )
    """License plate."""

    @property
    def current_driver(self) -> str | None:
        return self.current_holder

    @property
    def plate_number(self) -> str | None:
        return self.display_name


class Tool(Asset):
    """A tool row from the ``tools`` table."""

    kind: ClassVar[AssetKind] = AssetKind.TOOL

    current_holder: str | None = Field(
        default=None,
        validation_alias=AliasChoices("current_user_name", "current_holder"),
    )
    """Contractor using the tool."""
    checked_out_by: str | None = Field(
        default=None,
        validation_alias=AliasChoices("checked_out_by"),
    )
    """Operator who performed the check-out."""
    location: str | None = Field(
        default=None,
        validation_alias=AliasChoices("current_location", "location"),
    )
    last_activity_at: TrackerTimestamp = Field(
        default=None,
        validation_alias=AliasChoices("last_activity", "last_activity_at"),
    )
    display_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("name", "display_name"),
    )


_MODELS: dict[AssetKind, type[Asset]] = {AssetKind.VEHICLE: Vehicle, AssetKind.TOOL: Tool}


def asset_from_row(kind: AssetKind | str, row: dict[str, Any]) -> Asset:
    """Validate a backend row into the model for *kind*."""
    return _MODELS[AssetKind(kind)].model_validate(row)


class AssetMutation(BaseModel):
    """A partial update to apply to one asset.

    Only fields that were explicitly set are written; setting a field to
    ``None`` clears the column.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    in_use: bool | None = None
    current_holder: str | None = None
    checked_out_by: str | None = None
    last_holder: str | None = None
    odometer: float | None = None
    location: str | None = None
    last_activity_at: datetime | None = None
    registration_expires_at: date | None = None

    def to_columns(self, spec: AssetKindSpec) -> dict[str, Any]:
        """Map set fields onto backend column names for *spec*.

        Fields the kind does not track are dropped.
        """
        columns: dict[str, Any] = {}
        column_for: dict[str, str | None] = {
            "in_use": "in_use",
            "current_holder": spec.holder_column,
            "checked_out_by": spec.secondary_column,
            "last_holder": spec.last_holder_column,
            "odometer": spec.odometer_column,
            "location": spec.location_column,
            "last_activity_at": "last_activity",
            "registration_expires_at": spec.registration_column,
        }
        for field_name in self.model_fields_set:
            column = column_for.get(field_name)
            if column is None:
                continue
            value = getattr(self, field_name)
            if isinstance(value, datetime):
                value = format_timestamp(value)
            elif isinstance(value, date):
                value = value.isoformat()
            columns[column] = value
        return columns
