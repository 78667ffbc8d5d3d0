"""Application configuration and constants."""
import os
import sys
from pathlib import Path


def _resource_path(relative: str) -> Path:
    """Get path to resource, works for PyInstaller bundles."""
    if getattr(sys, "frozen", False):
        base_dir = Path(sys._MEIPASS)
    else:
        base_dir = Path(__file__).resolve().parent.parent
    return base_dir / relative


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Directories
SHEETS_DIR = Path(os.environ.get("PRACTICE_SHEETS_DIR", _resource_path("data/sheets")))

# Attempts
TEST_TIME_LIMIT_SECONDS = _parse_int_env("TEST_TIME_LIMIT_SECONDS", 60 * 60)
SESSION_TTL_SECONDS = _parse_int_env("SESSION_TTL_SECONDS", 6 * 60 * 60)

# Housekeeping
CLEANUP_INTERVAL_SECONDS = _parse_int_env("CLEANUP_INTERVAL_SECONDS", 10 * 60)
STALE_SESSION_HOURS = _parse_int_env("STALE_SESSION_HOURS", 24)

# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DB_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'drill.db'}"
)

# Authentication (tokens are issued by the account service)
SECRET_KEY = os.environ.get(
    "SECRET_KEY",
    "CHANGE_ME_IN_PRODUCTION_USE_openssl_rand_hex_32"
)
ALGORITHM = "HS256"
