import os

# Read from environment, default to the local payload servers
ENCODED_BASE_URL = os.environ.get("ENCODED_BASE_URL", "http://localhost:3001")
ARCHIVE_BASE_URL = os.environ.get("ARCHIVE_BASE_URL", "http://localhost:3002")
REQUEST_TIMEOUT_S = float(os.environ.get("REQUEST_TIMEOUT_S", "30"))

ENCODED_PORT = 3001
ARCHIVE_PORT = 3002

DEFAULT_SIZE = 1000
BENCHMARK_SIZES = (100, 500, 1000, 5000, 10000)
COOLDOWN_MS = 1000


def get_encoded_base_url() -> str:
    """Get the base URL of the content-encoding payload server."""
    return ENCODED_BASE_URL


def get_archive_base_url() -> str:
    """Get the base URL of the zip archive payload server."""
    return ARCHIVE_BASE_URL


def get_request_timeout() -> float:
    """Get the per-request timeout in seconds."""
    return REQUEST_TIMEOUT_S


def parse_size(raw: str | None) -> int:
    """Parse a requested record count, falling back to the default.

    Missing and non-numeric values give DEFAULT_SIZE; negative counts clamp to zero.
    """
    if raw is None:
        return DEFAULT_SIZE
    try:
        return max(int(raw), 0)
    except ValueError:
        return DEFAULT_SIZE
