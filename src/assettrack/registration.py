"""Vehicle registration expiry helpers."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import UTC, date, datetime, time
from enum import StrEnum

from assettrack._constants import EXPIRY_CRITICAL_DAYS, EXPIRY_SOON_DAYS
from assettrack.exceptions import TransferValidationError
from assettrack.models._base import AssetKind
from assettrack.models.asset import Asset, AssetMutation
from assettrack.registry import AssetRegistry

_logger = logging.getLogger(__name__)


class ExpirationStatus(StrEnum):
    EXPIRED = "expired"
    CRITICAL = "critical"
    EXPIRING_SOON = "expiring_soon"
    OK = "ok"
    UNKNOWN = "unknown"


def days_remaining(expires_on: date | None, now: datetime) -> int | None:
    """Whole days until *expires_on* (midnight UTC), rounded up.

    Negative once the date has passed; ``None`` when no date is set.
    """
    if expires_on is None:
        return None
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    expiry = datetime.combine(expires_on, time.min, tzinfo=UTC)
    return math.ceil((expiry - now).total_seconds() / 86400)


def add_one_year(value: date) -> date:
    """Same month and day next year; 29 February becomes 28 February."""
    try:
        return value.replace(year=value.year + 1)
    except ValueError:
        return value.replace(year=value.year + 1, day=28)


def expiration_status(days: int | None) -> ExpirationStatus:
    if days is None:
        return ExpirationStatus.UNKNOWN
    if days < 0:
        return ExpirationStatus.EXPIRED
    if days <= EXPIRY_CRITICAL_DAYS:
        return ExpirationStatus.CRITICAL
    if days <= EXPIRY_SOON_DAYS:
        return ExpirationStatus.EXPIRING_SOON
    return ExpirationStatus.OK


def needs_renewal(days: int | None) -> bool:
    """Expired or within the expiring-soon window."""
    return days is not None and days <= EXPIRY_SOON_DAYS


async def renew_registration(
    registry: AssetRegistry,
    vehicle_id: str,
    *,
    clock: Callable[[], datetime],
) -> Asset:
    """Push a vehicle's registration expiry forward by one year.

    Raises
    ------
    TransferValidationError
        The vehicle has no registration date to renew from.
    """
    vehicle = await registry.get(AssetKind.VEHICLE, vehicle_id)
    if vehicle.registration_expires_at is None:
        raise TransferValidationError({"registration_expires_at": "Vehicle has no registration date"})
    renewed = add_one_year(vehicle.registration_expires_at)
    _logger.info("Renewing registration for %s: %s -> %s", vehicle_id, vehicle.registration_expires_at, renewed)
    return await registry.apply(
        AssetKind.VEHICLE,
        vehicle_id,
        AssetMutation(registration_expires_at=renewed, last_activity_at=clock()),
    )


async def renew_expired_registrations(
    registry: AssetRegistry,
    *,
    clock: Callable[[], datetime],
) -> list[Asset]:
    """Renew every vehicle whose registration has already lapsed.

    Vehicles without a registration date, or still within their term,
    are left alone. Returns the renewed vehicles in name order.
    """
    now = clock()
    renewed: list[Asset] = []
    for vehicle in await registry.list(AssetKind.VEHICLE):
        days = days_remaining(vehicle.registration_expires_at, now)
        if days is None or days >= 0:
            continue
        renewed.append(await renew_registration(registry, vehicle.id, clock=clock))
    if renewed:
        _logger.info("Auto-renewed %d expired registration(s)", len(renewed))
    return renewed
