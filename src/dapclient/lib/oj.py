"""JSON helpers backed by orjson."""

from typing import Any

import orjson

JSONDecodeError = orjson.JSONDecodeError


def loads(data: bytes | bytearray | memoryview | str) -> Any:
    """Parse JSON from bytes or str."""
    return orjson.loads(data)


def dumps(obj: Any) -> bytes:
    """Serialize to compact UTF-8 encoded JSON."""
    return orjson.dumps(obj)


def pretty(obj: Any) -> str:
    """Indented JSON text, used for verbose message tracing."""
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2).decode("utf-8")
