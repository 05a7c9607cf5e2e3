"""Store layer.

Two narrow async interfaces back the registry and the activity log:
:class:`RegistryStore` (read/write/list of current asset rows) and
:class:`LogStore` (append-only activity entries). In-memory and
PostgREST implementations are provided.
"""

from assettrack.store.base import LogStore, RegistryStore
from assettrack.store.memory import MemoryLogStore, MemoryRegistryStore
from assettrack.store.postgrest import PostgrestLogStore, PostgrestRegistryStore

__all__ = [
    "LogStore",
    "MemoryLogStore",
    "MemoryRegistryStore",
    "PostgrestLogStore",
    "PostgrestRegistryStore",
    "RegistryStore",
]
