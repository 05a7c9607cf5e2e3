"""Custom exception hierarchy for assettrack."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from assettrack.models.plan import TransferStep


class TrackerError(Exception):
    """Base exception for all assettrack errors."""


class TrackerConfigError(TrackerError):
    """Invalid or missing configuration."""


class AssetNotFoundError(TrackerError):
    """No asset with the requested id exists in the registry."""

    def __init__(self, kind: str, asset_id: str) -> None:
        self.kind = kind
        self.asset_id = asset_id
        super().__init__(f"{kind} {asset_id!r} not found")


class TransferValidationError(TrackerError):
    """Submitted fields failed validation.

    ``errors`` maps the offending field name to a human-readable message,
    e.g. ``{"primary_actor_name": "Driver name is required"}``.
    """

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors: dict[str, str] = dict(errors)
        summary = "; ".join(f"{key}: {msg}" for key, msg in self.errors.items())
        super().__init__(f"Invalid transfer request ({summary})")


class PersistenceError(TrackerError):
    """Backing store rejected a read, write or append.

    When raised from a transfer, ``completed_steps`` holds the steps whose
    registry write and log append both finished before the failure. The
    registry reflects exactly those steps (plus a possibly-applied write
    of the failing step); nothing is rolled back.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        completed_steps: Sequence[TransferStep] = (),
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.completed_steps: tuple[TransferStep, ...] = tuple(completed_steps)
        super().__init__(message)


class AuthenticationError(TrackerError):
    """Shared PIN or admin password rejected."""


class GeocodingError(TrackerError):
    """Reverse geocoding lookup failed."""
