"""In-memory stores.

Used by tests and for running without a hosted backend. Rows are deep
copied on the way in and out so callers never alias stored state.
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import Iterable, Mapping
from typing import Any

from assettrack.exceptions import AssetNotFoundError
from assettrack.kinds import AssetKindSpec
from assettrack.models._base import AssetKind
from assettrack.models.log import ActivityLogEntry


def _sort_key(value: Any) -> tuple[int, Any]:
    # None sorts last in both directions.
    return (1, "") if value is None else (0, value)


class MemoryRegistryStore:
    """Asset rows held in a dict per asset kind."""

    def __init__(self, rows: Mapping[AssetKind, Iterable[Mapping[str, Any]]] | None = None) -> None:
        self._rows: dict[AssetKind, dict[str, dict[str, Any]]] = {kind: {} for kind in AssetKind}
        for kind, kind_rows in (rows or {}).items():
            for row in kind_rows:
                self.add(AssetKind(kind), row)

    def add(self, kind: AssetKind, row: Mapping[str, Any]) -> None:
        """Provision an asset row (NFC tags are printed ahead of time)."""
        asset_id = str(row["id"])
        self._rows[kind][asset_id] = copy.deepcopy(dict(row)) | {"id": asset_id}

    async def read(self, spec: AssetKindSpec, asset_id: str) -> dict[str, Any] | None:
        row = self._rows[spec.kind].get(asset_id)
        return copy.deepcopy(row) if row is not None else None

    async def write(self, spec: AssetKindSpec, asset_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        row = self._rows[spec.kind].get(asset_id)
        if row is None:
            raise AssetNotFoundError(spec.kind, asset_id)
        row.update(copy.deepcopy(dict(fields)))
        return copy.deepcopy(row)

    async def list(self, spec: AssetKindSpec, *, order_by: str, descending: bool = False) -> list[dict[str, Any]]:
        rows = [copy.deepcopy(row) for row in self._rows[spec.kind].values()]
        present = [row for row in rows if row.get(order_by) is not None]
        missing = [row for row in rows if row.get(order_by) is None]
        present.sort(key=lambda row: _sort_key(row.get(order_by)), reverse=descending)
        return present + missing


class MemoryLogStore:
    """Append-only list of entries per asset kind."""

    def __init__(self) -> None:
        self._entries: dict[AssetKind, list[tuple[int, ActivityLogEntry]]] = {kind: [] for kind in AssetKind}
        self._seq = itertools.count()

    async def append(self, entry: ActivityLogEntry) -> None:
        self._entries[entry.asset_kind].append((next(self._seq), entry))

    async def list(
        self,
        spec: AssetKindSpec,
        *,
        asset_id: str | None = None,
        limit: int | None = None,
    ) -> list[ActivityLogEntry]:
        items = [
            (seq, entry)
            for seq, entry in self._entries[spec.kind]
            if asset_id is None or entry.asset_id == asset_id
        ]
        # Entries sharing a timestamp (both halves of a transfer) keep append order.
        items.sort(key=lambda item: (item[1].created_at, item[0]), reverse=True)
        entries = [entry for _, entry in items]
        return entries[:limit] if limit is not None else entries

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())
