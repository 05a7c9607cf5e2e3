from __future__ import annotations

from assettrack._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "apikey": "anon-key",
        "Authorization": "Bearer anon-key",
        "driver": "Alice",
        "nested": {"field_pin": "1234", "odometer": 1050},
        "rows": [{"admin_password": "pw", "name": "Drill"}],
    }

    redacted = redact_for_log(payload)
    assert redacted["apikey"] == "<redacted>"
    assert redacted["Authorization"] == "<redacted>"
    assert redacted["driver"] == "Alice"
    assert redacted["nested"] == {"field_pin": "<redacted>", "odometer": 1050}
    assert redacted["rows"] == [{"admin_password": "<redacted>", "name": "Drill"}]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_passes_scalars_and_missing_bodies_through() -> None:
    assert redact_for_log(None) is None
    assert redact_for_log({"in_use": True, "current_odometer": 1050.5}) == {"in_use": True, "current_odometer": 1050.5}
    assert redact_for_log("HTTP 401: bad apikey") == "HTTP 401: bad apikey"
