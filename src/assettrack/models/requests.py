"""Pydantic request models for client entrypoints.

These models provide a consistent "validate → normalize → execute" flow.
Structural problems (a non-numeric odometer) are rejected here; rules
that depend on the asset kind live in :mod:`assettrack.engine`.
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from assettrack._constants import RECENT_ACTIVITY_LIMIT
from assettrack.exceptions import TransferValidationError
from assettrack.normalize import safe_float


def _field_errors(exc: ValidationError) -> TransferValidationError:
    """Convert a pydantic error into one message per offending field."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ("request",)
        key = str(loc[0])
        message = str(error.get("msg", "invalid value"))
        # pydantic prefixes custom ValueError messages.
        errors.setdefault(key, message.removeprefix("Value error, "))
    return TransferValidationError(errors)


class AssetRequest(BaseModel):
    """Request containing an asset id."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    asset_id: str

    @field_validator("asset_id", mode="before")
    @classmethod
    def _asset_id_non_empty(cls, value: Any) -> str:
        asset_id = str(value).strip() if value is not None else ""
        if not asset_id:
            raise ValueError("asset id must be non-empty")
        return asset_id

    @classmethod
    def parse(cls, asset_id: Any) -> Self:
        """Validate a raw id, raising :class:`TransferValidationError` keyed on ``asset_id``."""
        try:
            return cls(asset_id=asset_id)
        except ValidationError as exc:
            raise _field_errors(exc) from exc


class TransferRequest(BaseModel):
    """One submission from an asset status page.

    Parameters
    ----------
    primary_actor_name : str
        Driver (vehicles) or contractor (tools).
    secondary_actor_name : str or None
        Operator performing the action (tools only).
    odometer : float or None
        Odometer reading (vehicles only).
    location : str or None
        Current location (tools only).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    primary_actor_name: str = ""
    secondary_actor_name: str | None = None
    odometer: float | None = None
    location: str | None = None

    @field_validator("odometer", mode="before")
    @classmethod
    def _coerce_odometer(cls, value: Any) -> float | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        parsed = safe_float(value)
        if parsed is None:
            raise ValueError("Odometer must be a number")
        return parsed

    @field_validator("primary_actor_name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @classmethod
    def from_form(cls, **fields: Any) -> TransferRequest:
        """Build a request from raw form values.

        Raises
        ------
        TransferValidationError
            With one message per offending field.
        """
        try:
            return cls(**fields)
        except ValidationError as exc:
            raise _field_errors(exc) from exc


class RenewRegistrationRequest(AssetRequest):
    pass


class DashboardRequest(BaseModel):
    """Listing options for the admin dashboard."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    recent_limit: int = Field(default=RECENT_ACTIVITY_LIMIT, ge=1)
