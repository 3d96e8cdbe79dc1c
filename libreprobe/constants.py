"""
Shared constants used across all libreprobe modules.

Centralises endpoint paths, default headers, and tunables so they live in
exactly one place.
"""

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

USER_AGENT = f"libreprobe/{__version__}"

REQUEST_TIMEOUT = 30.0           # seconds, ceiling for any single request

# ---------------------------------------------------------------------------
# LibreSpeed backend endpoints (relative to a server's base URL)
# ---------------------------------------------------------------------------

SERVER_INFO_PATH = "/backend/getIP.php"
DOWNLOAD_PATH = "/backend/garbage.php"
UPLOAD_PATH = "/backend/empty.php"
PING_PATH = "/backend/empty.php"

# ---------------------------------------------------------------------------
# Test defaults
# ---------------------------------------------------------------------------

DEFAULT_DOWNLOAD_SIZE_MB = 50
DEFAULT_UPLOAD_SIZE_MB = 10
DEFAULT_SMALL_UPLOAD_SIZE_MB = 1
DEFAULT_PING_COUNT = 10
DEFAULT_DOWNLOAD_TIMEOUT = 60.0
DEFAULT_UPLOAD_TIMEOUT = 60.0
DEFAULT_PING_TIMEOUT = 5.0

# ---------------------------------------------------------------------------
# Validation bounds
# ---------------------------------------------------------------------------

MIN_PING_COUNT = 1
MAX_PING_COUNT = 100
MAX_SIZE_MB = 1024               # garbage.php refuses larger ckSize values

# ---------------------------------------------------------------------------
# Data transfer
# ---------------------------------------------------------------------------

CHUNK_SIZE = 256 * 1024          # 256 KB read size for the download stream
MEGABYTE = 1024 * 1024           # payload sizes are binary megabytes

# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------

RESULT_PRECISION = 2
