"""Client configuration for assettrack."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from assettrack._constants import DEFAULT_GEOCODER_URL, ODOMETER_ROLLBACK_WARNING
from assettrack.exceptions import TrackerConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class TableNames:
    """Backend table names.

    The defaults match the tables provisioned for the hosted backend.
    """

    vehicles: str = "vehicles"
    vehicle_logs: str = "logs"
    tools: str = "tools"
    tool_logs: str = "tool_logs"


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Client configuration.

    Parameters
    ----------
    supabase_url : str or None
        Base URL of the hosted PostgREST backend
        (e.g. ``"https://abc.supabase.co"``). ``None`` selects the
        in-memory stores.
    supabase_key : str or None
        API key sent as both ``apikey`` and bearer token.
    field_pin : str or None
        Shared PIN for the NFC status pages. Either a plaintext PIN
        (hashed when the verifier is built) or an encoded
        ``pbkdf2_sha256$...`` hash from :func:`assettrack.auth.hash_secret`.
    admin_password : str or None
        Shared dashboard password, same formats as ``field_pin``.
    request_timeout : float
        Total timeout in seconds for each backend request.
    odometer_rollback_warning : int
        Readings more than this far below the stored odometer produce
        a non-blocking warning.
    geocoder_enabled : bool
        Whether :meth:`TrackerClient.resolve_location` calls the geocoder
        or returns plain coordinates.
    geocoder_url : str
        Base URL of a Nominatim-compatible reverse geocoder.
    api_trace_enabled : bool
        Enable transport-level request/response tracing callback.
    tables : TableNames
        Backend table names.
    """

    supabase_url: str | None = None
    supabase_key: str | None = None
    field_pin: str | None = None
    admin_password: str | None = None
    request_timeout: float = 10.0
    odometer_rollback_warning: int = ODOMETER_ROLLBACK_WARNING
    geocoder_enabled: bool = True
    geocoder_url: str = DEFAULT_GEOCODER_URL
    api_trace_enabled: bool = False
    tables: TableNames = dataclasses.field(default_factory=TableNames)

    @property
    def uses_rest_backend(self) -> bool:
        return bool(self.supabase_url)

    def validate(self) -> None:
        """Raise :class:`TrackerConfigError` for inconsistent settings."""
        if self.uses_rest_backend and not self.supabase_key:
            raise TrackerConfigError("supabase_key is required when supabase_url is set")
        if self.request_timeout <= 0:
            raise TrackerConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.odometer_rollback_warning < 0:
            raise TrackerConfigError(
                f"odometer_rollback_warning must be non-negative, got {self.odometer_rollback_warning}"
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from environment variables.

        Reads ``ASSETTRACK_SUPABASE_URL``, ``ASSETTRACK_SUPABASE_KEY`` and
        the optional ``ASSETTRACK_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TrackerConfig
            Populated configuration.
        """
        env = os.environ

        table_kwargs: dict[str, str] = {}
        _ENV_TABLE_MAP = {
            "ASSETTRACK_TABLE_VEHICLES": "vehicles",
            "ASSETTRACK_TABLE_VEHICLE_LOGS": "vehicle_logs",
            "ASSETTRACK_TABLE_TOOLS": "tools",
            "ASSETTRACK_TABLE_TOOL_LOGS": "tool_logs",
        }
        for env_key, field_name in _ENV_TABLE_MAP.items():
            val = env.get(env_key)
            if val is not None:
                table_kwargs[field_name] = val

        table_overrides = overrides.pop("tables", None)
        if isinstance(table_overrides, dict):
            table_kwargs.update(table_overrides)
        elif isinstance(table_overrides, TableNames):
            table_kwargs = dataclasses.asdict(table_overrides)

        tables = TableNames(**table_kwargs) if table_kwargs else TableNames()

        _ENV_CONFIG_MAP = {
            "ASSETTRACK_SUPABASE_URL": "supabase_url",
            "ASSETTRACK_SUPABASE_KEY": "supabase_key",
            "ASSETTRACK_GEOCODER_URL": "geocoder_url",
        }
        config_kwargs: dict[str, Any] = {"tables": tables}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # Hashed secrets win over plaintext ones.
        pin = env.get("ASSETTRACK_FIELD_PIN_HASH") or env.get("ASSETTRACK_FIELD_PIN")
        if pin is not None:
            config_kwargs["field_pin"] = pin
        password = env.get("ASSETTRACK_ADMIN_PASSWORD_HASH") or env.get("ASSETTRACK_ADMIN_PASSWORD")
        if password is not None:
            config_kwargs["admin_password"] = password

        timeout_env = env.get("ASSETTRACK_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        rollback_env = env.get("ASSETTRACK_ODOMETER_ROLLBACK_WARNING")
        if rollback_env is not None and "odometer_rollback_warning" not in overrides:
            config_kwargs["odometer_rollback_warning"] = int(rollback_env)

        if "geocoder_enabled" not in overrides:
            config_kwargs["geocoder_enabled"] = _env_bool(env.get("ASSETTRACK_GEOCODER_ENABLED"), True)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("ASSETTRACK_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
