from typing import Any, Dict, List, Sequence

from ..config.settings import IS_PRODUCTION


def validation_message(errors: Sequence[Dict[str, Any]]) -> str:
    """Collapse pydantic error dicts into one readable line: "title: Field required; year: ..." """
    parts: List[str] = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        parts.append(f"{'.'.join(location)}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


def server_error_detail(message: str, exc: Exception) -> str:
    """Attach the underlying error text except in production"""
    if IS_PRODUCTION:
        return message
    return f"{message}: {str(exc)}"
