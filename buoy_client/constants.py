# =============================================================================
# Buoy Python Client -- Protocol Constants
# =============================================================================

PROTOCOL_VERSION = 2

# -- Timing (seconds) --------------------------------------------------------

KEEPALIVE_INTERVAL = 600.0  # recycle idle connections every 10 minutes
HEARTBEAT_TIMEOUT = 15.0  # server pings every 10s
CONNECTION_TIMEOUT = 10.0

# -- Reconnection -------------------------------------------------------------

BACKOFF_FACTOR = 7  # delay_ms = (attempt * factor) ** 2
BACKOFF_MAX_DELAY = 5.0

# -- Channels -----------------------------------------------------------------

MIN_CHANNEL_LENGTH = 10

# -- Messages ------------------------------------------------------------------

MAX_MESSAGE_SIZE = 1_048_576  # 1 MB
EVENT_QUEUE_SIZE = 1000

# -- Heartbeat frames ----------------------------------------------------------

HEARTBEAT_MAGIC = b"\x42\x42\x01"
HEARTBEAT_ACK_MAGIC = b"\x42\x42\x02"
HEARTBEAT_FRAME_SIZE = 4

# -- HTTP headers --------------------------------------------------------------

HEADER_WAIT = "X-Buoy-Wait"
HEADER_SOFT_WAIT = "X-Buoy-Soft-Wait"
HEADER_DELIVERY = "X-Buoy-Delivery"

# Extra slack on top of the server-side wait before the HTTP client gives up
SEND_TIMEOUT_MARGIN = 5.0
SEND_DEFAULT_TIMEOUT = 30.0

# -- HTTP status codes ---------------------------------------------------------

HTTP_REQUEST_TIMEOUT = 408
HTTP_GONE = 410

# -- WebSocket close codes -----------------------------------------------------

WS_CLOSE_NORMAL = 1000
