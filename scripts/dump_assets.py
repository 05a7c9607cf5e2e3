#!/usr/bin/env python3
"""Dump every asset and its recent activity.

Reads the configured backend and prints each vehicle and tool with the
parsed model fields **and** the raw backend row, so you can spot columns
that aren't mapped yet.

Usage
-----
Set environment variables and run::

    export ASSETTRACK_SUPABASE_URL="https://<project>.supabase.co"
    export ASSETTRACK_SUPABASE_KEY="<anon key>"
    python scripts/dump_assets.py

Options::

    --kind vehicle|tool  Only dump this kind (default: both)
    --id V1              Only dump this asset
    --limit N            Log entries per asset (default: 12)
    --sort name|status   Listing order (default: name)
    --json               Output as machine-readable JSON
    --output FILE        Write output to FILE instead of stdout
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from assettrack import AssetKind, TrackerClient, TrackerConfig  # noqa: E402
from assettrack.models import Asset  # noqa: E402
from assettrack.registration import days_remaining, expiration_status  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _format_field(key: str, value: Any, indent: int = 2) -> str:
    prefix = " " * indent
    if isinstance(value, datetime):
        return f"{prefix}{key}: {value.isoformat()}"
    if isinstance(value, dict):
        return f"{prefix}{key}: <dict with {len(value)} keys>"
    return f"{prefix}{key}: {value}"


def _print_asset(asset: Asset, out: list[str], *, now: datetime) -> dict[str, Any]:
    out.append(_section(f"{asset.kind.upper()}  id={asset.id}  ({asset.label})"))
    parsed = asset.model_dump(exclude={"raw"})
    for key, value in parsed.items():
        out.append(_format_field(key, value))
    if asset.kind == AssetKind.VEHICLE:
        days = days_remaining(asset.registration_expires_at, now)
        out.append(_format_field("registration", f"{expiration_status(days)} ({days} days)"))
    out.append("\n  ── raw row ──")
    out.append(json.dumps(asset.raw, indent=2, default=str, ensure_ascii=False))
    return parsed


async def dump_kind(
    client: TrackerClient,
    kind: AssetKind,
    *,
    only_id: str | None,
    limit: int,
    sort: str,
    json_mode: bool,
) -> list[dict[str, Any]]:
    out: list[str] = []
    dumped: list[dict[str, Any]] = []
    now = datetime.now(UTC)

    assets = await (client.list_vehicles(sort) if kind == AssetKind.VEHICLE else client.list_tools(sort))
    for asset in assets:
        if only_id and asset.id != only_id:
            continue
        parsed = _print_asset(asset, out, now=now)
        entries = await client.recent_logs(kind, asset_id=asset.id, limit=limit)
        out.append(f"\n  ── last {len(entries)} log entries ──")
        for entry in entries:
            measurement = entry.odometer if kind == AssetKind.VEHICLE else entry.location
            out.append(
                f"    {entry.created_at.isoformat()}  {entry.event_type:<8}  {entry.actor_name}"
                f"  {entry.secondary_actor_name or ''}  {measurement if measurement is not None else ''}"
            )
        dumped.append(
            {
                "asset": parsed,
                "raw": asset.raw,
                "logs": [entry.model_dump(mode="json") for entry in entries],
            }
        )

    if not json_mode:
        print("\n".join(out))
    return dumped


# ── main ─────────────────────────────────────────────────────


async def main() -> None:
    parser = argparse.ArgumentParser(description="Dump all assets and recent activity for debugging.")
    parser.add_argument("--kind", choices=[kind.value for kind in AssetKind], help="Only dump this asset kind")
    parser.add_argument("--id", dest="asset_id", help="Only dump this asset id")
    parser.add_argument("--limit", type=int, default=12, help="Log entries per asset")
    parser.add_argument("--sort", choices=["name", "status"], default="name", help="Listing order")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = TrackerConfig.from_env()
    kinds = [AssetKind(args.kind)] if args.kind else list(AssetKind)
    result: dict[str, Any] = {"timestamp": datetime.now(UTC).isoformat(), "backend": config.supabase_url}

    if not args.json_mode:
        print(_section("assettrack dump_assets"))
        print(f"  time      : {result['timestamp']}")
        print(f"  backend   : {config.supabase_url or '<in-memory>'}")

    async with TrackerClient(config) as client:
        for kind in kinds:
            result[f"{kind.value}s"] = await dump_kind(
                client,
                kind,
                only_id=args.asset_id,
                limit=args.limit,
                sort=args.sort,
                json_mode=args.json_mode,
            )

    payload = json.dumps(result, indent=2, default=str, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        print(f"JSON written to {args.output}", file=sys.stderr)
    elif args.json_mode:
        print(payload)


if __name__ == "__main__":
    asyncio.run(main())
