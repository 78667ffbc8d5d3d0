"""Path utilities for practice sheets."""
from pathlib import Path

from api import config


def sheets_dir() -> Path:
    """Get directory holding practice sheet files."""
    return Path(config.SHEETS_DIR)


def sheet_path(sheet_id: str) -> Path:
    """Get path to practice sheet JSON."""
    return sheets_dir() / f"{sheet_id}.json"
