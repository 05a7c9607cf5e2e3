"""HTTP transport for a hosted PostgREST (Supabase) backend."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import aiohttp

from assettrack._constants import REST_PATH, USER_AGENT
from assettrack._redact import redact_for_log
from assettrack.config import TrackerConfig
from assettrack.exceptions import PersistenceError, TrackerConfigError

_logger = logging.getLogger(__name__)

#: ``(method, endpoint, status, body)`` with the body already redacted.
TraceCallback = Callable[[str, str, int | None, Any], None]


class Transport(Protocol):
    """Structural transport interface used by the REST stores.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`PostgrestTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        table: str,
        *,
        params: Mapping[str, str] | None = None,
        body: Any = None,
        prefer: str | None = None,
    ) -> Any:
        ...


class PostgrestTransport:
    """Table-level HTTP calls against ``<base_url>/rest/v1/<table>``."""

    def __init__(
        self,
        config: TrackerConfig,
        http_session: aiohttp.ClientSession,
        *,
        on_trace: TraceCallback | None = None,
    ) -> None:
        if not config.supabase_url or not config.supabase_key:
            raise TrackerConfigError("PostgrestTransport requires supabase_url and supabase_key")
        self._config = config
        self._http = http_session
        self._base_url = config.supabase_url.rstrip("/") + REST_PATH
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)
        self._on_trace = on_trace if config.api_trace_enabled else None

    def _headers(self, prefer: str | None) -> dict[str, str]:
        key = self._config.supabase_key or ""
        headers: dict[str, str] = {
            "apikey": key,
            "authorization": f"Bearer {key}",
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }
        if prefer:
            headers["prefer"] = prefer
        return headers

    def _trace(self, method: str, endpoint: str, status: int | None, body: Any) -> None:
        if self._on_trace is None:
            return
        try:
            self._on_trace(method, endpoint, status, redact_for_log(body))
        except Exception:
            _logger.debug("on_trace callback failed", exc_info=True)

    async def request(
        self,
        method: str,
        table: str,
        *,
        params: Mapping[str, str] | None = None,
        body: Any = None,
        prefer: str | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Returns ``None`` for empty bodies (e.g. ``Prefer: return=minimal``).
        Every failure, including timeouts, is raised as
        :class:`PersistenceError`; nothing is retried.
        """
        endpoint = f"/{table}"
        url = f"{self._base_url}{endpoint}"
        headers = self._headers(prefer)
        data = json.dumps(body, separators=(",", ":")) if body is not None else None

        _logger.debug(
            "%s %s params=%s headers=%s body=%s",
            method,
            url,
            dict(params or {}),
            redact_for_log(headers),
            redact_for_log(body),
        )
        self._trace(method, endpoint, None, {"params": dict(params or {}), "body": body})

        try:
            async with self._http.request(
                method,
                url,
                params=dict(params or {}),
                data=data,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                self._trace(method, endpoint, resp.status, text)
                if resp.status >= 300:
                    raise PersistenceError(
                        f"HTTP {resp.status} from {method} {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except PersistenceError:
            raise
        except asyncio.TimeoutError as exc:
            raise PersistenceError(
                f"{method} {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise PersistenceError(
                f"{method} {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise PersistenceError(
                f"Invalid JSON from {method} {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc
