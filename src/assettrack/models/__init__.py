"""Data models for assets, activity logs and transfers."""

from assettrack.models._base import (
    AssetKind,
    EventType,
    TrackerBaseModel,
    TrackerDate,
    TrackerTimestamp,
    format_timestamp,
    parse_date,
    parse_timestamp,
)
from assettrack.models.asset import Asset, AssetMutation, Tool, Vehicle, asset_from_row
from assettrack.models.log import ActivityLogEntry
from assettrack.models.plan import TransferOutcome, TransferPlan, TransferResult, TransferStep
from assettrack.models.requests import AssetRequest, DashboardRequest, RenewRegistrationRequest, TransferRequest

__all__ = [
    "ActivityLogEntry",
    "Asset",
    "AssetKind",
    "AssetMutation",
    "AssetRequest",
    "DashboardRequest",
    "EventType",
    "RenewRegistrationRequest",
    "Tool",
    "TrackerBaseModel",
    "TrackerDate",
    "TrackerTimestamp",
    "TransferOutcome",
    "TransferPlan",
    "TransferRequest",
    "TransferResult",
    "TransferStep",
    "Vehicle",
    "asset_from_row",
    "format_timestamp",
    "parse_date",
    "parse_timestamp",
]
