"""Check-out / check-in / transfer decisions and their execution.

A single submission from an asset page carries the requester's name and a
measurement (odometer for vehicles, location for tools). What it does
depends only on the asset's current state:

==========================  ==========================================
current state               plan
==========================  ==========================================
available                   check out to the requester
in use by the requester     check in (returned by the requester)
in use by someone else      check in the previous holder, then check
                            out to the requester ("transfer")
==========================  ==========================================

The requester is matched to the current holder by exact, case-sensitive
name equality after trimming. There is no session identity behind the
name, so two people with the same name are indistinguishable.

:func:`plan_transfer` is pure. :class:`TransferEngine` reads the asset,
plans, then applies each step to the registry and appends its log entry,
awaiting each write before starting the next. Completed steps are never
rolled back. No lock is held across the read and the writes, so two
concurrent submissions for the same asset can both plan from the same
snapshot and the later registry write wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from assettrack._constants import ODOMETER_ROLLBACK_WARNING
from assettrack.exceptions import AssetNotFoundError, PersistenceError, TrackerError, TransferValidationError
from assettrack.kinds import AssetKindSpec, spec_for
from assettrack.models._base import AssetKind, EventType
from assettrack.models.asset import Asset, AssetMutation
from assettrack.models.log import ActivityLogEntry
from assettrack.models.plan import TransferOutcome, TransferPlan, TransferResult, TransferStep
from assettrack.models.requests import TransferRequest
from assettrack.normalize import format_measurement, names_match, safe_str
from assettrack.registry import ActivityLog, AssetRegistry

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def validate_transfer_request(spec: AssetKindSpec, request: TransferRequest) -> None:
    """Raise :class:`TransferValidationError` listing every missing or bad field."""
    errors: dict[str, str] = {}

    if not safe_str(request.primary_actor_name):
        errors["primary_actor_name"] = f"{spec.holder_label} name is required"

    if spec.has_secondary_actor and not safe_str(request.secondary_actor_name):
        errors["secondary_actor_name"] = "Your name is required"

    if spec.uses_odometer:
        if request.odometer is None:
            errors["odometer"] = "Odometer reading is required"
        elif request.odometer < 0:
            errors["odometer"] = "Odometer reading cannot be negative"

    if spec.uses_location and not safe_str(request.location):
        errors["location"] = "Location is required"

    if errors:
        raise TransferValidationError(errors)


def odometer_warnings(
    current: Asset,
    request: TransferRequest,
    *,
    threshold: float = ODOMETER_ROLLBACK_WARNING,
) -> list[str]:
    """Soft check: flag readings far below the stored odometer. Never blocks."""
    if current.odometer is None or request.odometer is None:
        return []
    drop = current.odometer - request.odometer
    if drop <= threshold:
        return []
    return [
        f"Odometer reading {format_measurement(request.odometer)} is "
        f"{format_measurement(drop)} below the current reading {format_measurement(current.odometer)}"
    ]


def _step(
    spec: AssetKindSpec,
    asset_id: str,
    event_type: EventType,
    *,
    actor_name: str,
    secondary_actor_name: str | None,
    requester: str,
    odometer: float | None,
    location: str | None,
    at: datetime,
) -> TransferStep:
    checking_out = event_type == EventType.CHECKOUT
    fields: dict[str, Any] = {
        "in_use": checking_out,
        "current_holder": actor_name if checking_out else None,
        "last_activity_at": at,
    }
    if spec.has_secondary_actor:
        fields["checked_out_by"] = secondary_actor_name if checking_out else None
    if spec.last_holder_column is not None:
        # Always the requester, even on the implicit check-in of the previous holder.
        fields["last_holder"] = requester
    if spec.uses_odometer:
        fields["odometer"] = odometer
    if spec.uses_location:
        fields["location"] = location

    entry = ActivityLogEntry(
        asset_kind=spec.kind,
        asset_id=asset_id,
        event_type=event_type,
        actor_name=actor_name,
        secondary_actor_name=secondary_actor_name if spec.has_secondary_actor else None,
        odometer=odometer if spec.uses_odometer else None,
        location=location if spec.uses_location else None,
        created_at=at,
    )
    return TransferStep(event_type=event_type, mutation=AssetMutation(**fields), entry=entry)


def plan_transfer(
    current: Asset,
    request: TransferRequest,
    *,
    now: datetime,
    odometer_rollback_warning: float = ODOMETER_ROLLBACK_WARNING,
) -> TransferPlan:
    """Decide what one submission does to *current*.

    Pure function of its arguments. Validates first and raises
    :class:`TransferValidationError` before anything is planned.
    """
    spec = spec_for(current.kind)
    validate_transfer_request(spec, request)

    actor = request.primary_actor_name.strip()
    secondary = safe_str(request.secondary_actor_name)
    location = safe_str(request.location)
    is_same_actor = current.in_use and names_match(current.current_holder, actor)

    steps: list[TransferStep] = []
    previous_holder: str | None = None

    if current.in_use and not is_same_actor:
        # The previous holder is returned with the state the asset already had.
        previous_holder = current.current_holder or "Unknown"
        steps.append(
            _step(
                spec,
                current.id,
                EventType.CHECKIN,
                actor_name=previous_holder,
                secondary_actor_name=current.checked_out_by,
                odometer=current.odometer,
                location=current.location,
                requester=actor,
                at=now,
            )
        )

    if not current.in_use or not is_same_actor:
        steps.append(
            _step(
                spec,
                current.id,
                EventType.CHECKOUT,
                actor_name=actor,
                secondary_actor_name=secondary,
                odometer=request.odometer,
                location=location,
                requester=actor,
                at=now,
            )
        )
    else:
        steps.append(
            _step(
                spec,
                current.id,
                EventType.CHECKIN,
                actor_name=actor,
                secondary_actor_name=secondary,
                odometer=request.odometer,
                location=location,
                requester=actor,
                at=now,
            )
        )

    if len(steps) == 2:
        outcome = TransferOutcome.TRANSFER
    elif steps[0].event_type == EventType.CHECKOUT:
        outcome = TransferOutcome.CHECKOUT
    else:
        outcome = TransferOutcome.CHECKIN

    warnings: list[str] = []
    if spec.uses_odometer:
        warnings = odometer_warnings(current, request, threshold=odometer_rollback_warning)

    return TransferPlan(
        asset_kind=spec.kind,
        asset_id=current.id,
        outcome=outcome,
        steps=tuple(steps),
        planned_at=now,
        previous_holder=previous_holder,
        warnings=tuple(warnings),
    )


class TransferEngine:
    """Reads an asset, plans a submission and commits it step by step."""

    def __init__(
        self,
        registry: AssetRegistry,
        log: ActivityLog,
        *,
        clock: Callable[[], datetime] = _utcnow,
        odometer_rollback_warning: float = ODOMETER_ROLLBACK_WARNING,
    ) -> None:
        self._registry = registry
        self._log = log
        self._clock = clock
        self._odometer_rollback_warning = odometer_rollback_warning

    async def request_transfer(
        self,
        kind: AssetKind | str,
        asset_id: str,
        request: TransferRequest,
    ) -> TransferResult:
        """Check out, check in or transfer *asset_id* for *request*.

        Raises
        ------
        AssetNotFoundError
            Unknown asset id.
        TransferValidationError
            Bad or missing fields; nothing was written.
        PersistenceError
            A store call failed. ``completed_steps`` on the error lists the
            steps that fully committed; re-fetch the asset before retrying.
            An asset deleted mid-transfer is reported this way too.
        """
        current = await self._registry.get(kind, asset_id)
        plan = plan_transfer(
            current,
            request,
            now=self._clock(),
            odometer_rollback_warning=self._odometer_rollback_warning,
        )
        for warning in plan.warnings:
            _logger.warning("%s %s: %s", plan.asset_kind, plan.asset_id, warning)
        asset = await self.execute(plan)
        return TransferResult(plan=plan, asset=asset)

    async def execute(self, plan: TransferPlan) -> Asset:
        """Apply each step in order: registry write, then log append."""
        completed: list[TransferStep] = []
        asset: Asset | None = None
        for step in plan.steps:
            try:
                asset = await self._registry.apply(plan.asset_kind, plan.asset_id, step.mutation)
                await self._log.append(step.entry)
            except (PersistenceError, AssetNotFoundError) as exc:
                _logger.error(
                    "%s %s: %s step failed after %d committed step(s): %s",
                    plan.asset_kind,
                    plan.asset_id,
                    step.event_type,
                    len(completed),
                    exc,
                )
                if isinstance(exc, AssetNotFoundError):
                    # Row deleted after the read; report it as a failed write.
                    raise PersistenceError(str(exc), completed_steps=completed) from exc
                raise PersistenceError(
                    str(exc),
                    status_code=exc.status_code,
                    endpoint=exc.endpoint,
                    completed_steps=completed,
                ) from exc
            completed.append(step)
            _logger.info(
                "%s %s: %s by %s",
                plan.asset_kind,
                plan.asset_id,
                step.event_type,
                step.actor_name,
            )
        if asset is None:
            raise TrackerError(f"Transfer plan for {plan.asset_kind} {plan.asset_id} has no steps")
        return asset
