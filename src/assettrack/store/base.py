"""Store interfaces consumed by the registry and the transfer engine."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from assettrack.kinds import AssetKindSpec
from assettrack.models.log import ActivityLogEntry


class RegistryStore(Protocol):
    """Current asset rows, keyed by external id.

    Rows use backend column names. ``write`` is a partial update and
    returns the updated row; it raises :class:`AssetNotFoundError` when
    no row matches and :class:`PersistenceError` when the write is
    rejected.
    """

    async def read(self, spec: AssetKindSpec, asset_id: str) -> dict[str, Any] | None: ...

    async def write(self, spec: AssetKindSpec, asset_id: str, fields: Mapping[str, Any]) -> dict[str, Any]: ...

    async def list(self, spec: AssetKindSpec, *, order_by: str, descending: bool = False) -> list[dict[str, Any]]: ...


class LogStore(Protocol):
    """Append-only activity log. No update or delete is exposed."""

    async def append(self, entry: ActivityLogEntry) -> None: ...

    async def list(
        self,
        spec: AssetKindSpec,
        *,
        asset_id: str | None = None,
        limit: int | None = None,
    ) -> list[ActivityLogEntry]:
        """Entries for *spec*, newest first."""
        ...
