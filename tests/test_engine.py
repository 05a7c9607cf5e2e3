from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from assettrack.engine import TransferEngine, plan_transfer
from assettrack.exceptions import AssetNotFoundError, PersistenceError, TransferValidationError
from assettrack.kinds import TOOL, VEHICLE
from assettrack.models import (
    ActivityLogEntry,
    AssetKind,
    EventType,
    Tool,
    TransferOutcome,
    TransferRequest,
    Vehicle,
)
from assettrack.registry import ActivityLog, AssetRegistry
from assettrack.store.memory import MemoryLogStore, MemoryRegistryStore


class StepClock:
    """Returns a time one minute later on every call."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 3, 1, 8, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self._now
        self._now += timedelta(minutes=1)
        return current


class FailingLogStore(MemoryLogStore):
    def __init__(self, fail_on: int) -> None:
        super().__init__()
        self._fail_on = fail_on
        self.calls = 0

    async def append(self, entry: ActivityLogEntry) -> None:
        self.calls += 1
        if self.calls == self._fail_on:
            raise PersistenceError("HTTP 503 from POST /logs: unavailable", status_code=503, endpoint="/logs")
        await super().append(entry)


class FailingRegistryStore(MemoryRegistryStore):
    async def write(self, spec: Any, asset_id: str, fields: Any) -> dict[str, Any]:
        raise PersistenceError("PATCH /vehicles timed out after 10.0s", endpoint="/vehicles")


class VanishingRegistryStore(MemoryRegistryStore):
    """Deletes the row just before the given write."""

    def __init__(self, rows: Any, vanish_on: int) -> None:
        super().__init__(rows)
        self._vanish_on = vanish_on
        self.writes = 0

    async def write(self, spec: Any, asset_id: str, fields: Any) -> dict[str, Any]:
        self.writes += 1
        if self.writes == self._vanish_on:
            raise AssetNotFoundError(spec.kind, asset_id)
        return await super().write(spec, asset_id, fields)


def _vehicle_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {"id": "V1", "plate_number": "ABC-123", "in_use": False, "current_odometer": 1000}
    row.update(overrides)
    return row


def _tool_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {"id": "T1", "name": "Hilti drill", "in_use": False, "current_location": "Depot"}
    row.update(overrides)
    return row


def _engine(
    registry_store: MemoryRegistryStore | None = None,
    log_store: MemoryLogStore | None = None,
) -> tuple[TransferEngine, AssetRegistry, ActivityLog, MemoryLogStore]:
    if registry_store is None:
        registry_store = MemoryRegistryStore({AssetKind.VEHICLE: [_vehicle_row()], AssetKind.TOOL: [_tool_row()]})
    if log_store is None:
        log_store = MemoryLogStore()
    registry = AssetRegistry(registry_store)
    log = ActivityLog(log_store)
    return TransferEngine(registry, log, clock=StepClock()), registry, log, log_store


def _drive(driver: str, odometer: Any) -> TransferRequest:
    return TransferRequest.from_form(primary_actor_name=driver, odometer=odometer)


@pytest.mark.asyncio
async def test_available_vehicle_is_checked_out_to_requester() -> None:
    engine, registry, log, _ = _engine()

    result = await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Alice", 1050))

    assert result.outcome == TransferOutcome.CHECKOUT
    assert result.message == "V1 checked out to Alice."
    vehicle = await registry.get(AssetKind.VEHICLE, "V1")
    assert vehicle.in_use is True
    assert vehicle.current_holder == "Alice"
    assert vehicle.last_holder == "Alice"
    assert vehicle.odometer == 1050
    entries = await log.list(AssetKind.VEHICLE, asset_id="V1")
    assert [(e.event_type, e.actor_name, e.odometer) for e in entries] == [(EventType.CHECKOUT, "Alice", 1050)]


@pytest.mark.asyncio
async def test_vehicle_checkout_transfer_and_return_sequence() -> None:
    engine, registry, log, _ = _engine()

    await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Alice", 1050))
    transfer = await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Bob", 1100))

    assert transfer.outcome == TransferOutcome.TRANSFER
    assert transfer.plan.previous_holder == "Alice"
    assert transfer.message == "V1 returned from Alice and checked out to Bob."
    assert transfer.asset.current_holder == "Bob"
    assert transfer.asset.odometer == 1100

    entries = await log.list(AssetKind.VEHICLE, asset_id="V1")
    assert [(e.event_type, e.actor_name, e.odometer) for e in entries] == [
        (EventType.CHECKOUT, "Bob", 1100),
        (EventType.CHECKIN, "Alice", 1050),
        (EventType.CHECKOUT, "Alice", 1050),
    ]

    returned = await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Bob", 1300))

    assert returned.outcome == TransferOutcome.CHECKIN
    vehicle = await registry.get(AssetKind.VEHICLE, "V1")
    assert vehicle.in_use is False
    assert vehicle.current_holder is None
    assert vehicle.last_holder == "Bob"
    assert vehicle.odometer == 1300
    assert vehicle.status_text == "Available"
    assert len(await log.list(AssetKind.VEHICLE)) == 4


@pytest.mark.asyncio
async def test_transfer_entries_share_a_timestamp_and_keep_order() -> None:
    engine, _, log, _ = _engine()

    await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Alice", 1050))
    result = await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Bob", 1100))

    checkin, checkout = result.entries
    assert checkin.created_at == checkout.created_at
    newest = await log.list(AssetKind.VEHICLE, limit=2)
    assert [entry.event_type for entry in newest] == [EventType.CHECKOUT, EventType.CHECKIN]


@pytest.mark.asyncio
async def test_same_holder_with_surrounding_whitespace_checks_in() -> None:
    store = MemoryRegistryStore(
        {AssetKind.VEHICLE: [_vehicle_row(in_use=True, current_driver="Alice", current_odometer=1050)]}
    )
    engine, _, _, log_store = _engine(store)

    result = await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("  Alice ", 1100))

    assert result.outcome == TransferOutcome.CHECKIN
    assert len(result.plan.steps) == 1
    assert result.asset.in_use is False
    assert len(log_store) == 1


@pytest.mark.asyncio
async def test_repeating_a_checkout_returns_the_asset() -> None:
    engine, registry, log, _ = _engine()

    first = await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Alice", 1050))
    second = await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Alice", 1050))

    assert first.outcome == TransferOutcome.CHECKOUT
    assert second.outcome == TransferOutcome.CHECKIN
    assert (await registry.get(AssetKind.VEHICLE, "V1")).in_use is False
    entries = await log.list(AssetKind.VEHICLE)
    assert [e.event_type for e in entries] == [EventType.CHECKIN, EventType.CHECKOUT]


@pytest.mark.asyncio
async def test_holder_name_match_is_case_sensitive() -> None:
    store = MemoryRegistryStore(
        {AssetKind.VEHICLE: [_vehicle_row(in_use=True, current_driver="Alice", current_odometer=1050)]}
    )
    engine, _, _, _ = _engine(store)

    result = await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("alice", 1100))

    assert result.outcome == TransferOutcome.TRANSFER
    assert [step.actor_name for step in result.plan.steps] == ["Alice", "alice"]


@pytest.mark.asyncio
async def test_in_use_vehicle_without_holder_is_returned_as_unknown() -> None:
    store = MemoryRegistryStore({AssetKind.VEHICLE: [_vehicle_row(in_use=True, current_driver="")]})
    engine, _, _, _ = _engine(store)

    result = await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Bob", 1100))

    assert result.outcome == TransferOutcome.TRANSFER
    assert result.entries[0].actor_name == "Unknown"
    assert result.entries[0].event_type == EventType.CHECKIN


@pytest.mark.asyncio
async def test_missing_fields_are_rejected_without_any_writes() -> None:
    engine, registry, _, log_store = _engine()
    before = await registry.get(AssetKind.VEHICLE, "V1")

    with pytest.raises(TransferValidationError) as exc_info:
        await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("  ", ""))

    assert exc_info.value.errors == {
        "primary_actor_name": "Driver name is required",
        "odometer": "Odometer reading is required",
    }
    assert await registry.get(AssetKind.VEHICLE, "V1") == before
    assert len(log_store) == 0


@pytest.mark.asyncio
async def test_negative_odometer_is_rejected() -> None:
    engine, _, _, log_store = _engine()

    with pytest.raises(TransferValidationError) as exc_info:
        await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Alice", -5))

    assert exc_info.value.errors == {"odometer": "Odometer reading cannot be negative"}
    assert len(log_store) == 0


def test_non_numeric_odometer_is_rejected_by_the_form() -> None:
    with pytest.raises(TransferValidationError) as exc_info:
        _drive("Alice", "twelve")

    assert exc_info.value.errors == {"odometer": "Odometer must be a number"}


def test_odometer_too_large_for_a_float_is_rejected_by_the_form() -> None:
    with pytest.raises(TransferValidationError) as exc_info:
        _drive("Alice", 10**400)

    assert exc_info.value.errors == {"odometer": "Odometer must be a number"}


@pytest.mark.asyncio
async def test_unknown_asset_raises_not_found() -> None:
    engine, _, _, log_store = _engine()

    with pytest.raises(AssetNotFoundError) as exc_info:
        await engine.request_transfer(AssetKind.VEHICLE, "V404", _drive("Alice", 10))

    assert exc_info.value.asset_id == "V404"
    assert len(log_store) == 0


@pytest.mark.asyncio
async def test_large_odometer_drop_warns_but_still_commits(caplog: pytest.LogCaptureFixture) -> None:
    store = MemoryRegistryStore({AssetKind.VEHICLE: [_vehicle_row(current_odometer=5000)]})
    engine, _, _, _ = _engine(store)

    with caplog.at_level(logging.WARNING, logger="assettrack.engine"):
        result = await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Alice", 3000))

    assert result.outcome == TransferOutcome.CHECKOUT
    assert result.asset.odometer == 3000
    assert result.plan.warnings == ("Odometer reading 3,000 is 2,000 below the current reading 5,000",)
    assert "2,000 below" in caplog.text


def test_odometer_drop_at_threshold_does_not_warn() -> None:
    vehicle = Vehicle(id="V1", odometer=5000)
    plan = plan_transfer(vehicle, _drive("Alice", 4000), now=datetime(2026, 3, 1, tzinfo=UTC))

    assert plan.warnings == ()


def test_plan_transfer_uses_prior_state_for_the_returning_holder() -> None:
    now = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)
    vehicle = Vehicle(id="V1", in_use=True, current_holder="Alice", odometer=1050)

    plan = plan_transfer(vehicle, _drive("Bob", 1200), now=now)

    checkin, checkout = plan.steps
    assert checkin.mutation.to_columns(VEHICLE) == {
        "in_use": False,
        "current_driver": None,
        "last_driver": "Bob",
        "current_odometer": 1050,
        "last_activity": "2026-03-01T09:30:00+00:00",
    }
    assert checkout.mutation.to_columns(VEHICLE) == {
        "in_use": True,
        "current_driver": "Bob",
        "last_driver": "Bob",
        "current_odometer": 1200,
        "last_activity": "2026-03-01T09:30:00+00:00",
    }
    assert plan.planned_at == now


@pytest.mark.asyncio
async def test_tool_transfer_records_contractor_operator_and_location() -> None:
    store = MemoryRegistryStore(
        {
            AssetKind.TOOL: [
                _tool_row(in_use=True, current_user_name="Carol", checked_out_by="Op1", current_location="Yard")
            ]
        }
    )
    engine, _, log, _ = _engine(store)
    request = TransferRequest.from_form(
        primary_actor_name="Dave",
        secondary_actor_name="Op2",
        location="Site B",
    )

    result = await engine.request_transfer(AssetKind.TOOL, "T1", request)

    assert result.outcome == TransferOutcome.TRANSFER
    assert isinstance(result.asset, Tool)
    assert result.asset.current_holder == "Dave"
    assert result.asset.checked_out_by == "Op2"
    assert result.asset.location == "Site B"
    entries = await log.list(AssetKind.TOOL, asset_id="T1")
    assert [(e.event_type, e.actor_name, e.secondary_actor_name, e.location) for e in entries] == [
        (EventType.CHECKOUT, "Dave", "Op2", "Site B"),
        (EventType.CHECKIN, "Carol", "Op1", "Yard"),
    ]
    assert all(entry.odometer is None for entry in entries)


@pytest.mark.asyncio
async def test_tool_checkin_clears_operator() -> None:
    store = MemoryRegistryStore(
        {AssetKind.TOOL: [_tool_row(in_use=True, current_user_name="Carol", checked_out_by="Op1")]}
    )
    engine, _, _, _ = _engine(store)
    request = TransferRequest.from_form(primary_actor_name="Carol", secondary_actor_name="Op3", location="Depot")

    result = await engine.request_transfer(AssetKind.TOOL, "T1", request)

    assert result.outcome == TransferOutcome.CHECKIN
    assert result.message == "T1 checked in by Op3."
    assert result.asset.in_use is False
    assert result.asset.current_holder is None
    assert result.asset.checked_out_by is None
    assert result.asset.location == "Depot"


@pytest.mark.asyncio
async def test_tool_requires_operator_and_location() -> None:
    engine, _, _, log_store = _engine()

    with pytest.raises(TransferValidationError) as exc_info:
        await engine.request_transfer(AssetKind.TOOL, "T1", TransferRequest.from_form(primary_actor_name="Dave"))

    assert exc_info.value.errors == {
        "secondary_actor_name": "Your name is required",
        "location": "Location is required",
    }
    assert len(log_store) == 0


def test_tool_plan_ignores_odometer() -> None:
    tool = Tool(id="T1", location="Depot")
    request = TransferRequest.from_form(
        primary_actor_name="Dave",
        secondary_actor_name="Op2",
        location="Site B",
        odometer=12,
    )

    plan = plan_transfer(tool, request, now=datetime(2026, 3, 1, tzinfo=UTC))

    (step,) = plan.steps
    assert step.entry.odometer is None
    assert "current_odometer" not in step.mutation.to_columns(TOOL)
    assert plan.warnings == ()


@pytest.mark.asyncio
async def test_failed_log_append_reports_completed_steps() -> None:
    registry_store = MemoryRegistryStore(
        {AssetKind.VEHICLE: [_vehicle_row(in_use=True, current_driver="Alice", current_odometer=1050)]}
    )
    log_store = FailingLogStore(fail_on=2)
    engine, registry, log, _ = _engine(registry_store, log_store)

    with pytest.raises(PersistenceError) as exc_info:
        await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Bob", 1100))

    err = exc_info.value
    assert err.status_code == 503
    assert err.endpoint == "/logs"
    assert [step.event_type for step in err.completed_steps] == [EventType.CHECKIN]
    assert err.completed_steps[0].actor_name == "Alice"
    # The checkout write landed before its append failed; nothing is rolled back.
    vehicle = await registry.get(AssetKind.VEHICLE, "V1")
    assert vehicle.current_holder == "Bob"
    entries = await log.list(AssetKind.VEHICLE)
    assert [(e.event_type, e.actor_name) for e in entries] == [(EventType.CHECKIN, "Alice")]


@pytest.mark.asyncio
async def test_failed_first_write_reports_no_completed_steps() -> None:
    registry_store = FailingRegistryStore({AssetKind.VEHICLE: [_vehicle_row()]})
    engine, _, _, log_store = _engine(registry_store)

    with pytest.raises(PersistenceError) as exc_info:
        await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Alice", 1050))

    assert exc_info.value.completed_steps == ()
    assert "timed out" in str(exc_info.value)
    assert len(log_store) == 0


@pytest.mark.asyncio
async def test_asset_deleted_mid_transfer_reports_completed_steps() -> None:
    registry_store = VanishingRegistryStore(
        {AssetKind.VEHICLE: [_vehicle_row(in_use=True, current_driver="Alice", current_odometer=1050)]},
        vanish_on=2,
    )
    engine, _, log, _ = _engine(registry_store)

    with pytest.raises(PersistenceError) as exc_info:
        await engine.request_transfer(AssetKind.VEHICLE, "V1", _drive("Bob", 1100))

    err = exc_info.value
    assert isinstance(err.__cause__, AssetNotFoundError)
    assert [step.event_type for step in err.completed_steps] == [EventType.CHECKIN]
    entries = await log.list(AssetKind.VEHICLE)
    assert [(e.event_type, e.actor_name) for e in entries] == [(EventType.CHECKIN, "Alice")]
