import json
from datetime import datetime, timezone
from typing import Any, Optional


def parse_json_list(value: Any, field_name: str = "value") -> Any:
    """Accept a list, or a JSON string holding a list (multipart forms send arrays as text)."""
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            raise ValueError(f"{field_name} must be a JSON array")
        if not isinstance(parsed, list):
            raise ValueError(f"{field_name} must be a JSON array")
        return parsed
    raise ValueError(f"{field_name} must be an array")


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC so that MySQL and SQLite compare them the same way"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
