"""Stores backed by a hosted PostgREST (Supabase) backend."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from assettrack._transport import Transport
from assettrack.config import TableNames
from assettrack.exceptions import AssetNotFoundError, PersistenceError
from assettrack.kinds import AssetKindSpec, spec_for
from assettrack.models.log import ActivityLogEntry

_logger = logging.getLogger(__name__)


def _eq(value: str) -> str:
    return f"eq.{value}"


def _rows(payload: Any, endpoint: str) -> list[dict[str, Any]]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise PersistenceError(f"Expected a JSON array from {endpoint}, got {type(payload).__name__}", endpoint=endpoint)
    return [row for row in payload if isinstance(row, dict)]


class PostgrestRegistryStore:
    """Asset rows in the ``vehicles`` / ``tools`` tables."""

    def __init__(self, transport: Transport, tables: TableNames | None = None) -> None:
        self._transport = transport
        self._tables = tables or TableNames()

    async def read(self, spec: AssetKindSpec, asset_id: str) -> dict[str, Any] | None:
        table = spec.table(self._tables)
        payload = await self._transport.request(
            "GET",
            table,
            params={"select": "*", "id": _eq(asset_id), "limit": "1"},
        )
        rows = _rows(payload, f"/{table}")
        return rows[0] if rows else None

    async def write(self, spec: AssetKindSpec, asset_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        table = spec.table(self._tables)
        payload = await self._transport.request(
            "PATCH",
            table,
            params={"id": _eq(asset_id)},
            body=dict(fields),
            prefer="return=representation",
        )
        rows = _rows(payload, f"/{table}")
        if not rows:
            # PostgREST answers 200 with an empty array when nothing matched.
            raise AssetNotFoundError(spec.kind, asset_id)
        return rows[0]

    async def list(self, spec: AssetKindSpec, *, order_by: str, descending: bool = False) -> list[dict[str, Any]]:
        table = spec.table(self._tables)
        direction = "desc" if descending else "asc"
        payload = await self._transport.request(
            "GET",
            table,
            params={"select": "*", "order": f"{order_by}.{direction}.nullslast"},
        )
        return _rows(payload, f"/{table}")


class PostgrestLogStore:
    """Activity entries in the ``logs`` / ``tool_logs`` tables."""

    def __init__(self, transport: Transport, tables: TableNames | None = None) -> None:
        self._transport = transport
        self._tables = tables or TableNames()

    async def append(self, entry: ActivityLogEntry) -> None:
        spec = spec_for(entry.asset_kind)
        table = spec.log_table(self._tables)
        await self._transport.request(
            "POST",
            table,
            body=[entry.to_row(spec)],
            prefer="return=minimal",
        )

    async def list(
        self,
        spec: AssetKindSpec,
        *,
        asset_id: str | None = None,
        limit: int | None = None,
    ) -> list[ActivityLogEntry]:
        table = spec.log_table(self._tables)
        # Both halves of a transfer share created_at; the serial id breaks the tie.
        params: dict[str, str] = {"select": "*", "order": "created_at.desc,id.desc"}
        if asset_id is not None:
            params[spec.log_asset_column] = _eq(asset_id)
        if limit is not None:
            params["limit"] = str(limit)
        payload = await self._transport.request("GET", table, params=params)

        entries: list[ActivityLogEntry] = []
        for row in _rows(payload, f"/{table}"):
            try:
                entries.append(ActivityLogEntry.from_row(spec, row))
            except ValueError:
                _logger.warning("Skipping unreadable %s row: %s", table, row.get("id"))
        return entries
