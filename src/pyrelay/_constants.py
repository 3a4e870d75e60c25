"""Internal constants shared across the library."""

BASE_URL = "https://iot-backend-ipqy.onrender.com/api"
USER_AGENT = "pyrelay/1"

# Poller names. At most one timer per name is ever alive.
FLEET_POLLER = "fleet"
FOCUS_POLLER = "focus"

DEFAULT_FLEET_POLL_INTERVAL: float = 5.0
DEFAULT_FOCUS_POLL_INTERVAL: float = 5.0

# Fallback electricity price used until /power/rate/current has answered.
DEFAULT_RATE_PER_UNIT: float = 6.0
DEFAULT_CURRENCY = "INR"

AUTH_FAILURE_STATUSES: frozenset[int] = frozenset({401, 403})
