"""Internal constants shared across the library."""

USER_AGENT = "assettrack/1.0 (+https://github.com/assettrack/assettrack)"
REST_PATH = "/rest/v1"

#: A vehicle reading this far below the stored odometer is flagged (never blocked).
ODOMETER_ROLLBACK_WARNING = 1000

#: Registration windows, in days.
EXPIRY_CRITICAL_DAYS = 7
EXPIRY_SOON_DAYS = 21

#: Number of log entries the dashboard shows per asset kind.
RECENT_ACTIVITY_LIMIT = 12

DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org"
GEOCODER_ADDRESS_PARTS = 3
