"""Admin dashboard summaries."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from assettrack._constants import RECENT_ACTIVITY_LIMIT
from assettrack.models._base import AssetKind
from assettrack.models.asset import Asset
from assettrack.models.log import ActivityLogEntry
from assettrack.registration import days_remaining, needs_renewal
from assettrack.registry import ActivityLog


class VehicleStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int
    in_use: int
    available: int
    expiring_soon: int
    utilization_percent: int


class ToolStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int
    in_use: int
    available: int


class DashboardStats(BaseModel):
    """Headline numbers for the overview tab."""

    model_config = ConfigDict(frozen=True)

    vehicles: VehicleStats
    tools: ToolStats


def _utilization(in_use: int, total: int) -> int:
    if total == 0:
        return 0
    return round(in_use * 100 / total)


def compute_stats(vehicles: Sequence[Asset], tools: Sequence[Asset], *, now: datetime) -> DashboardStats:
    """Count assets by availability; expired registrations count as expiring soon."""
    vehicles_in_use = sum(1 for vehicle in vehicles if vehicle.in_use)
    expiring = sum(
        1 for vehicle in vehicles if needs_renewal(days_remaining(vehicle.registration_expires_at, now))
    )
    tools_in_use = sum(1 for tool in tools if tool.in_use)
    return DashboardStats(
        vehicles=VehicleStats(
            total=len(vehicles),
            in_use=vehicles_in_use,
            available=len(vehicles) - vehicles_in_use,
            expiring_soon=expiring,
            utilization_percent=_utilization(vehicles_in_use, len(vehicles)),
        ),
        tools=ToolStats(
            total=len(tools),
            in_use=tools_in_use,
            available=len(tools) - tools_in_use,
        ),
    )


async def recent_activity(
    log: ActivityLog,
    kind: AssetKind | str,
    *,
    limit: int = RECENT_ACTIVITY_LIMIT,
) -> list[ActivityLogEntry]:
    """Latest transitions across every asset of *kind*, newest first."""
    return await log.list(kind, limit=limit)
