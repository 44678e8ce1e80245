"""Shared constants for the Mattermost to Google Chat migration tool."""

# HTTP status codes
HTTP_OK = 200
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_RATE_LIMIT = 429
HTTP_SERVER_ERROR_MIN = 500

PERMISSION_DENIED_ERROR = "PERMISSION_DENIED"

# Mattermost REST API
MATTERMOST_API_PREFIX = "/api/v4"
MATTERMOST_TOKEN_HEADER = "Token"
DEFAULT_PAGE_SIZE = 200
DEFAULT_REQUEST_TIMEOUT = 60

# Accepted channel URL: scheme://host/team/channels/channel
CHANNEL_URL_PATTERN = r"^(https?://[^/]+)/([^/]+)/channels/([^/]+)/?$"

# Throughput control
DEFAULT_MESSAGE_DELAY = 0.1
DEFAULT_PROGRESS_INTERVAL = 50

# Google Chat
REPLY_FALLBACK_TO_NEW_THREAD = "REPLY_MESSAGE_FALLBACK_TO_NEW_THREAD"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Message composition
UNKNOWN_USERNAME = "unknown"
IMPORT_ANNOTATION = "imported from Mattermost"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

# Checkpoint persistence
DEFAULT_CHECKPOINT_FILE = ".mattermost_import_checkpoints.json"
