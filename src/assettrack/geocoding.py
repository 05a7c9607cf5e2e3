"""Reverse geocoding for tool locations.

Turns device coordinates into a short address using a Nominatim-compatible
``/reverse`` endpoint. Only the first three comma-separated parts of the
returned ``display_name`` are kept. When the lookup fails the location
falls back to ``"<lat>, <lon>"`` with five decimals.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum

import aiohttp
from pydantic import BaseModel, ConfigDict, Field

from assettrack._constants import DEFAULT_GEOCODER_URL, GEOCODER_ADDRESS_PARTS, USER_AGENT
from assettrack.exceptions import GeocodingError

_logger = logging.getLogger(__name__)


class LocationSource(StrEnum):
    GEOCODER = "geocoder"
    COORDINATES = "coordinates"


class ResolvedLocation(BaseModel):
    """A location string ready to submit with a tool transfer."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    label: str
    source: LocationSource


def format_coordinates(latitude: float, longitude: float) -> str:
    return f"{latitude:.5f}, {longitude:.5f}"


def shorten_display_name(display_name: str, parts: int = GEOCODER_ADDRESS_PARTS) -> str:
    """Keep the most specific *parts* of a comma-separated address."""
    pieces = [piece.strip() for piece in display_name.split(",") if piece.strip()]
    return ", ".join(pieces[:parts])


class ReverseGeocoder:
    """Async client for a Nominatim-compatible reverse geocoder."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        base_url: str = DEFAULT_GEOCODER_URL,
        timeout: float = 10.0,
    ) -> None:
        self._http = http_session
        self._url = base_url.rstrip("/") + "/reverse"
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def lookup(self, latitude: float, longitude: float) -> str:
        """Return the shortened address, raising :class:`GeocodingError` on failure."""
        params = {"format": "jsonv2", "lat": f"{latitude}", "lon": f"{longitude}"}
        try:
            async with self._http.get(
                self._url,
                params=params,
                headers={"user-agent": USER_AGENT, "accept": "application/json"},
                timeout=self._timeout,
            ) as resp:
                if resp.status != 200:
                    raise GeocodingError(f"HTTP {resp.status} from reverse geocoder")
                data = await resp.json(content_type=None)
        except GeocodingError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise GeocodingError(f"Reverse geocoding failed: {exc}") from exc

        display_name = data.get("display_name") if isinstance(data, dict) else None
        if not isinstance(display_name, str) or not display_name.strip():
            raise GeocodingError("Reverse geocoder returned no display_name")
        return shorten_display_name(display_name)

    async def resolve(self, latitude: float, longitude: float, *, strict: bool = False) -> ResolvedLocation:
        """Best-effort location label for a pair of coordinates.

        With ``strict=True`` lookup failures raise instead of falling back.
        """
        try:
            label = await self.lookup(latitude, longitude)
        except GeocodingError:
            if strict:
                raise
            _logger.warning("Reverse geocoding failed; using coordinates", exc_info=True)
            return coordinates_only(latitude, longitude)
        return ResolvedLocation(
            latitude=latitude,
            longitude=longitude,
            label=label,
            source=LocationSource.GEOCODER,
        )


def coordinates_only(latitude: float, longitude: float) -> ResolvedLocation:
    return ResolvedLocation(
        latitude=latitude,
        longitude=longitude,
        label=format_coordinates(latitude, longitude),
        source=LocationSource.COORDINATES,
    )
