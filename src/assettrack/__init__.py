"""assettrack - Async check-in/check-out tracking for vehicles and tools."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("assettrack")
except PackageNotFoundError:
    __version__ = "0+local"
from assettrack.auth import CredentialVerifier, HashedSecretVerifier, hash_secret
from assettrack.client import TrackerClient
from assettrack.config import TableNames, TrackerConfig
from assettrack.engine import TransferEngine, plan_transfer
from assettrack.exceptions import (
    AssetNotFoundError,
    AuthenticationError,
    GeocodingError,
    PersistenceError,
    TrackerConfigError,
    TrackerError,
    TransferValidationError,
)
from assettrack.kinds import AssetKindSpec, spec_for
from assettrack.models import (
    ActivityLogEntry,
    Asset,
    AssetKind,
    AssetMutation,
    EventType,
    Tool,
    TransferOutcome,
    TransferPlan,
    TransferRequest,
    TransferResult,
    TransferStep,
    Vehicle,
)
from assettrack.registry import ActivityLog, AssetRegistry, AssetSort

__all__ = [
    "__version__",
    "ActivityLog",
    "ActivityLogEntry",
    "Asset",
    "AssetKind",
    "AssetKindSpec",
    "AssetMutation",
    "AssetNotFoundError",
    "AssetRegistry",
    "AssetSort",
    "AuthenticationError",
    "CredentialVerifier",
    "EventType",
    "GeocodingError",
    "HashedSecretVerifier",
    "PersistenceError",
    "TableNames",
    "Tool",
    "TrackerClient",
    "TrackerConfig",
    "TrackerConfigError",
    "TrackerError",
    "TransferEngine",
    "TransferOutcome",
    "TransferPlan",
    "TransferRequest",
    "TransferResult",
    "TransferStep",
    "TransferValidationError",
    "Vehicle",
    "hash_secret",
    "plan_transfer",
    "spec_for",
]
