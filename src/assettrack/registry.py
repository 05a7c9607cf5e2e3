"""Asset registry and activity log.

The registry always reflects the latest state of each asset; no history
is retained there. History lives only in the append-only activity log.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from assettrack.exceptions import AssetNotFoundError
from assettrack.kinds import spec_for
from assettrack.models._base import AssetKind
from assettrack.models.asset import Asset, AssetMutation, asset_from_row
from assettrack.models.log import ActivityLogEntry
from assettrack.store.base import LogStore, RegistryStore

_logger = logging.getLogger(__name__)


class AssetSort(StrEnum):
    NAME = "name"
    STATUS = "status"


class AssetRegistry:
    """Typed access to current asset state."""

    def __init__(self, store: RegistryStore) -> None:
        self._store = store

    async def get(self, kind: AssetKind | str, asset_id: str) -> Asset:
        """Return the asset, raising :class:`AssetNotFoundError` if absent."""
        spec = spec_for(kind)
        row = await self._store.read(spec, asset_id)
        if row is None:
            raise AssetNotFoundError(spec.kind, asset_id)
        return asset_from_row(spec.kind, row)

    async def apply(self, kind: AssetKind | str, asset_id: str, mutation: AssetMutation) -> Asset:
        """Write *mutation* as one partial update and return the new state."""
        spec = spec_for(kind)
        columns = mutation.to_columns(spec)
        _logger.debug("Applying %s %s: %s", spec.kind, asset_id, sorted(columns))
        row = await self._store.write(spec, asset_id, columns)
        return asset_from_row(spec.kind, row)

    async def list(self, kind: AssetKind | str, sort: AssetSort | str = AssetSort.NAME) -> list[Asset]:
        """All assets of *kind*.

        ``NAME`` orders by plate number / tool name ascending; ``STATUS``
        puts in-use assets first.
        """
        spec = spec_for(kind)
        if AssetSort(sort) == AssetSort.STATUS:
            rows = await self._store.list(spec, order_by="in_use", descending=True)
        else:
            rows = await self._store.list(spec, order_by=spec.name_column)
        return [asset_from_row(spec.kind, row) for row in rows]


class ActivityLog:
    """Append-only record of every transition."""

    def __init__(self, store: LogStore) -> None:
        self._store = store

    async def append(self, entry: ActivityLogEntry) -> None:
        await self._store.append(entry)

    async def list(
        self,
        kind: AssetKind | str,
        *,
        asset_id: str | None = None,
        limit: int | None = None,
    ) -> list[ActivityLogEntry]:
        """Entries newest first, optionally for one asset and capped at *limit*."""
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        return await self._store.list(spec_for(kind), asset_id=asset_id, limit=limit)
