"""Transfer plan value types."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from assettrack.models._base import AssetKind, EventType
from assettrack.models.asset import Asset, AssetMutation
from assettrack.models.log import ActivityLogEntry


class TransferOutcome(StrEnum):
    CHECKOUT = "checkout"
    CHECKIN = "checkin"
    TRANSFER = "transfer"


class TransferStep(BaseModel):
    """One registry mutation plus the log entry that records it."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    event_type: EventType
    mutation: AssetMutation
    entry: ActivityLogEntry

    @property
    def actor_name(self) -> str:
        return self.entry.actor_name


class TransferPlan(BaseModel):
    """Ordered steps computed for one submission.

    ``steps`` has one element for a plain check-out or check-in and two
    (check-in of the previous holder, then check-out) for a transfer.
    ``warnings`` carries soft-check messages that never block execution.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    asset_kind: AssetKind
    asset_id: str
    outcome: TransferOutcome
    steps: tuple[TransferStep, ...]
    planned_at: datetime
    previous_holder: str | None = None
    warnings: tuple[str, ...] = Field(default_factory=tuple)

    @property
    def entries(self) -> tuple[ActivityLogEntry, ...]:
        return tuple(step.entry for step in self.steps)

    def describe(self) -> str:
        """Short confirmation message for the caller to display."""
        final = self.steps[-1].entry
        if self.outcome == TransferOutcome.TRANSFER:
            return f"{self.asset_id} returned from {self.previous_holder} and checked out to {final.actor_name}."
        if self.outcome == TransferOutcome.CHECKOUT:
            return f"{self.asset_id} checked out to {final.actor_name}."
        return f"{self.asset_id} checked in by {final.secondary_actor_name or final.actor_name}."


class TransferResult(BaseModel):
    """What a completed transfer committed."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    plan: TransferPlan
    asset: Asset

    @property
    def outcome(self) -> TransferOutcome:
        return self.plan.outcome

    @property
    def entries(self) -> tuple[ActivityLogEntry, ...]:
        return self.plan.entries

    @property
    def message(self) -> str:
        return self.plan.describe()
