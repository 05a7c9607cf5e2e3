"""Per-kind capability records.

Vehicles and tools share one check-in/check-out protocol but differ in
which backend columns carry the holder, the measurement and the
secondary actor. Everything that varies by kind is declared here so the
transfer engine and the stores stay kind-agnostic.
"""

from __future__ import annotations

import dataclasses

from assettrack.config import TableNames
from assettrack.models._base import AssetKind


@dataclasses.dataclass(frozen=True)
class AssetKindSpec:
    """Column layout for one asset kind.

    A column set to ``None`` means the kind does not track that field.
    """

    kind: AssetKind
    table_attr: str
    log_table_attr: str
    name_column: str
    holder_column: str
    secondary_column: str | None
    last_holder_column: str | None
    odometer_column: str | None
    location_column: str | None
    registration_column: str | None
    log_asset_column: str
    log_actor_column: str
    log_secondary_column: str | None
    log_odometer_column: str | None
    log_location_column: str | None
    holder_label: str
    secondary_label: str | None

    @property
    def has_secondary_actor(self) -> bool:
        return self.secondary_column is not None

    @property
    def uses_odometer(self) -> bool:
        return self.odometer_column is not None

    @property
    def uses_location(self) -> bool:
        return self.location_column is not None

    def table(self, tables: TableNames) -> str:
        return str(getattr(tables, self.table_attr))

    def log_table(self, tables: TableNames) -> str:
        return str(getattr(tables, self.log_table_attr))


VEHICLE = AssetKindSpec(
    kind=AssetKind.VEHICLE,
    table_attr="vehicles",
    log_table_attr="vehicle_logs",
    name_column="plate_number",
    holder_column="current_driver",
    secondary_column=None,
    last_holder_column="last_driver",
    odometer_column="current_odometer",
    location_column=None,
    registration_column="registration_expiration",
    log_asset_column="vehicle_id",
    log_actor_column="driver",
    log_secondary_column=None,
    log_odometer_column="odometer",
    log_location_column=None,
    holder_label="Driver",
    secondary_label=None,
)

TOOL = AssetKindSpec(
    kind=AssetKind.TOOL,
    table_attr="tools",
    log_table_attr="tool_logs",
    name_column="name",
    holder_column="current_user_name",
    secondary_column="checked_out_by",
    last_holder_column=None,
    odometer_column=None,
    location_column="current_location",
    registration_column=None,
    log_asset_column="tool_id",
    log_actor_column="user_name",
    log_secondary_column="checked_out_by",
    log_odometer_column=None,
    log_location_column="location",
    holder_label="Contractor",
    secondary_label="Checked out by",
)

_SPECS: dict[AssetKind, AssetKindSpec] = {VEHICLE.kind: VEHICLE, TOOL.kind: TOOL}


def spec_for(kind: AssetKind | str) -> AssetKindSpec:
    """Return the capability record for *kind* (``"vehicle"`` or ``"tool"``)."""
    try:
        return _SPECS[AssetKind(kind)]
    except ValueError as exc:
        raise ValueError(f"unknown asset kind: {kind!r}") from exc
