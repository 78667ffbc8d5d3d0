"""Utility modules."""
from api.utils.json_utils import json_dump, json_load, read_json_file
from api.utils.paths import sheet_path, sheets_dir
from api.utils.time_utils import utc_now
from api.utils.validation import validate_id, validate_sheet_exists

__all__ = [
    "json_dump",
    "json_load",
    "read_json_file",
    "sheet_path",
    "sheets_dir",
    "utc_now",
    "validate_id",
    "validate_sheet_exists",
]
