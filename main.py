import os
from pathlib import Path

import uvicorn

from api.app import app


def _default_sheets_dir() -> Path:
    return Path(os.environ.get("PRACTICE_SHEETS_DIR", Path.cwd() / "data" / "sheets"))


if __name__ == "__main__":
    os.environ.setdefault("PRACTICE_SHEETS_DIR", str(_default_sheets_dir()))
    uvicorn.run(
        app,
        host=os.environ.get("DRILL_HOST", "127.0.0.1"),
        port=int(os.environ.get("DRILL_PORT", "8000")),
    )
