"""Activity log entry model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from assettrack.models._base import AssetKind, EventType, format_timestamp, parse_timestamp
from assettrack.normalize import safe_float, safe_str

if TYPE_CHECKING:
    from assettrack.kinds import AssetKindSpec


class ActivityLogEntry(BaseModel):
    """One check-in or check-out, appended exactly once and never changed.

    Parameters
    ----------
    asset_kind : AssetKind
        Whether the entry belongs to a vehicle or a tool.
    asset_id : str
        Id of the asset the transition applied to.
    event_type : EventType
        ``checkout`` or ``checkin``.
    actor_name : str
        Holder for the transition (driver or contractor).
    secondary_actor_name : str or None
        Operator who performed the action (tools only).
    odometer : float or None
        Reading recorded with the transition (vehicles only).
    location : str or None
        Location recorded with the transition (tools only).
    created_at : datetime
        Time of the transition (UTC).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    asset_kind: AssetKind
    asset_id: str
    event_type: EventType
    actor_name: str
    secondary_actor_name: str | None = None
    odometer: float | None = None
    location: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("created_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def to_row(self, spec: AssetKindSpec) -> dict[str, Any]:
        """Serialise to the backend log table layout for *spec*."""
        row: dict[str, Any] = {
            spec.log_asset_column: self.asset_id,
            "event_type": self.event_type.value,
            spec.log_actor_column: self.actor_name,
            "created_at": format_timestamp(self.created_at),
        }
        if spec.log_secondary_column is not None:
            row[spec.log_secondary_column] = self.secondary_actor_name
        if spec.log_odometer_column is not None:
            row[spec.log_odometer_column] = self.odometer
        if spec.log_location_column is not None:
            row[spec.log_location_column] = self.location
        return row

    @classmethod
    def from_row(cls, spec: AssetKindSpec, row: dict[str, Any]) -> ActivityLogEntry:
        """Parse a backend log row for *spec*."""
        return cls(
            asset_kind=spec.kind,
            asset_id=str(row.get(spec.log_asset_column, "")),
            event_type=EventType(str(row.get("event_type", ""))),
            actor_name=safe_str(row.get(spec.log_actor_column)) or "",
            secondary_actor_name=(
                safe_str(row.get(spec.log_secondary_column)) if spec.log_secondary_column else None
            ),
            odometer=safe_float(row.get(spec.log_odometer_column)) if spec.log_odometer_column else None,
            location=safe_str(row.get(spec.log_location_column)) if spec.log_location_column else None,
            created_at=parse_timestamp(row.get("created_at")) or datetime.now(UTC),
        )
