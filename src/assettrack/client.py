"""High-level async client for the asset tracker."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import aiohttp

from assettrack import auth
from assettrack._constants import RECENT_ACTIVITY_LIMIT
from assettrack._transport import PostgrestTransport, TraceCallback
from assettrack.config import TrackerConfig
from assettrack.dashboard import DashboardStats, compute_stats, recent_activity
from assettrack.engine import TransferEngine
from assettrack.exceptions import TrackerError
from assettrack.geocoding import ResolvedLocation, ReverseGeocoder, coordinates_only
from assettrack.models._base import AssetKind
from assettrack.models.asset import Asset
from assettrack.models.log import ActivityLogEntry
from assettrack.models.plan import TransferResult
from assettrack.models.requests import AssetRequest, DashboardRequest, RenewRegistrationRequest, TransferRequest
from assettrack.registration import renew_expired_registrations, renew_registration
from assettrack.registry import ActivityLog, AssetRegistry, AssetSort
from assettrack.store.base import LogStore, RegistryStore
from assettrack.store.memory import MemoryLogStore, MemoryRegistryStore
from assettrack.store.postgrest import PostgrestLogStore, PostgrestRegistryStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TrackerClient:
    """Async client for vehicle and tool check-in/check-out.

    Usage::

        async with TrackerClient(TrackerConfig.from_env()) as client:
            client.verify_field_pin(pin)
            result = await client.submit_vehicle("V1", driver="Alice", odometer=1050)

    Without ``supabase_url`` the client runs against in-memory stores,
    which can also be injected directly.
    """

    def __init__(
        self,
        config: TrackerConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        registry_store: RegistryStore | None = None,
        log_store: LogStore | None = None,
        field_verifier: auth.CredentialVerifier | None = None,
        admin_verifier: auth.CredentialVerifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
        on_trace: TraceCallback | None = None,
    ) -> None:
        config.validate()
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._registry_store = registry_store
        self._log_store = log_store
        self._clock = clock
        self._on_trace = on_trace
        self._field_verifier = field_verifier or auth.build_verifier(config.field_pin, name="PIN")
        self._admin_verifier = admin_verifier or auth.build_verifier(config.admin_password, name="admin password")
        self._registry: AssetRegistry | None = None
        self._log: ActivityLog | None = None
        self._engine: TransferEngine | None = None
        self._geocoder: ReverseGeocoder | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TrackerClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()

        registry_store = self._registry_store
        log_store = self._log_store
        if registry_store is None or log_store is None:
            if self._config.uses_rest_backend:
                transport = PostgrestTransport(self._config, self._http_session, on_trace=self._on_trace)
                if registry_store is None:
                    registry_store = PostgrestRegistryStore(transport, self._config.tables)
                if log_store is None:
                    log_store = PostgrestLogStore(transport, self._config.tables)
            else:
                _logger.info("No backend URL configured; using in-memory stores")
                if registry_store is None:
                    registry_store = MemoryRegistryStore()
                if log_store is None:
                    log_store = MemoryLogStore()

        self._registry = AssetRegistry(registry_store)
        self._log = ActivityLog(log_store)
        self._engine = TransferEngine(
            self._registry,
            self._log,
            clock=self._clock,
            odometer_rollback_warning=self._config.odometer_rollback_warning,
        )
        if self._config.geocoder_enabled:
            self._geocoder = ReverseGeocoder(
                self._http_session,
                base_url=self._config.geocoder_url,
                timeout=self._config.request_timeout,
            )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._registry = None
        self._log = None
        self._engine = None
        self._geocoder = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_initialized(self) -> tuple[AssetRegistry, ActivityLog, TransferEngine]:
        if self._registry is None or self._log is None or self._engine is None:
            raise TrackerError("Client not initialized. Use 'async with TrackerClient(...) as client:'")
        return self._registry, self._log, self._engine

    @property
    def registry(self) -> AssetRegistry:
        return self._require_initialized()[0]

    @property
    def activity_log(self) -> ActivityLog:
        return self._require_initialized()[1]

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def verify_field_pin(self, pin: str) -> None:
        """Gate for the NFC status pages. Raises :class:`AuthenticationError`."""
        auth.require(self._field_verifier, pin, name="PIN")

    def verify_admin_password(self, password: str) -> None:
        """Gate for the dashboard. Raises :class:`AuthenticationError`."""
        auth.require(self._admin_verifier, password, name="admin password")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_vehicle(self, vehicle_id: str) -> Asset:
        request = AssetRequest.parse(vehicle_id)
        return await self.registry.get(AssetKind.VEHICLE, request.asset_id)

    async def get_tool(self, tool_id: str) -> Asset:
        request = AssetRequest.parse(tool_id)
        return await self.registry.get(AssetKind.TOOL, request.asset_id)

    async def list_vehicles(self, sort: AssetSort | str = AssetSort.NAME) -> list[Asset]:
        return await self.registry.list(AssetKind.VEHICLE, sort)

    async def list_tools(self, sort: AssetSort | str = AssetSort.NAME) -> list[Asset]:
        return await self.registry.list(AssetKind.TOOL, sort)

    async def recent_logs(
        self,
        kind: AssetKind | str,
        *,
        asset_id: str | None = None,
        limit: int | None = RECENT_ACTIVITY_LIMIT,
    ) -> list[ActivityLogEntry]:
        """Newest entries first; ``limit=None`` returns the full history."""
        return await self.activity_log.list(kind, asset_id=asset_id, limit=limit)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def submit_vehicle(self, vehicle_id: str, *, driver: str, odometer: Any) -> TransferResult:
        """Check a vehicle out, in, or over to *driver*."""
        _, _, engine = self._require_initialized()
        asset = AssetRequest.parse(vehicle_id)
        request = TransferRequest.from_form(primary_actor_name=driver, odometer=odometer)
        return await engine.request_transfer(AssetKind.VEHICLE, asset.asset_id, request)

    async def submit_tool(
        self,
        tool_id: str,
        *,
        contractor: str,
        checked_out_by: str,
        location: str,
    ) -> TransferResult:
        """Check a tool out, in, or over to *contractor*."""
        _, _, engine = self._require_initialized()
        asset = AssetRequest.parse(tool_id)
        request = TransferRequest.from_form(
            primary_actor_name=contractor,
            secondary_actor_name=checked_out_by,
            location=location,
        )
        return await engine.request_transfer(AssetKind.TOOL, asset.asset_id, request)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def renew_registration(self, vehicle_id: str) -> Asset:
        request = RenewRegistrationRequest.parse(vehicle_id)
        return await renew_registration(self.registry, request.asset_id, clock=self._clock)

    async def renew_expired_registrations(self) -> list[Asset]:
        """Renew every lapsed registration by one year. Renewals are not logged."""
        return await renew_expired_registrations(self.registry, clock=self._clock)

    async def dashboard_stats(self) -> DashboardStats:
        vehicles = await self.list_vehicles()
        tools = await self.list_tools()
        return compute_stats(vehicles, tools, now=self._clock())

    async def dashboard(self, *, recent_limit: int = RECENT_ACTIVITY_LIMIT) -> dict[str, Any]:
        """Everything the overview tab shows, in one call."""
        options = DashboardRequest(recent_limit=recent_limit)
        vehicles = await self.list_vehicles()
        tools = await self.list_tools()
        return {
            "stats": compute_stats(vehicles, tools, now=self._clock()),
            "vehicles": vehicles,
            "tools": tools,
            "vehicle_logs": await recent_activity(self.activity_log, AssetKind.VEHICLE, limit=options.recent_limit),
            "tool_logs": await recent_activity(self.activity_log, AssetKind.TOOL, limit=options.recent_limit),
        }

    # ------------------------------------------------------------------
    # Location
    # ------------------------------------------------------------------

    async def resolve_location(self, latitude: float, longitude: float, *, strict: bool = False) -> ResolvedLocation:
        """Short address for a tool form, or plain coordinates when geocoding is off."""
        self._require_initialized()
        if self._geocoder is None:
            return coordinates_only(latitude, longitude)
        return await self._geocoder.resolve(latitude, longitude, strict=strict)
