"""Unified JSON helpers backed by orjson."""
from typing import Any

import orjson

JSONDecodeError = orjson.JSONDecodeError


def json_dumps(obj: Any) -> str:
    """Serialize to a Unicode str, the form stored in the station cache."""
    return orjson.dumps(obj).decode()


def json_loads(s: str | bytes) -> Any:
    return orjson.loads(s)


__all__ = ["json_dumps", "json_loads", "JSONDecodeError"]
