# webswitch/core/jsonutils.py
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import PurePath
from typing import Any

__all__ = ["safeJsonDumps", "tryJSONify"]



def tryJSONify(value: Any, *, _maxDepth: int | None = 32, _depth: int = 0) -> Any:
    """
    Best-effort conversion into JSON-safe data.

      - paths → str, datetimes → ISO 8601, enums → their value
      - dataclasses and pydantic models → dicts
      - sets/tuples → lists
      - anything else unknown → repr()
    """
    if _maxDepth is not None and _depth > _maxDepth:
        return "<max depth>"
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return tryJSONify(value.value, _maxDepth=_maxDepth, _depth=_depth + 1)
    if hasattr(value, "model_dump"):
        return tryJSONify(value.model_dump(mode="json"), _maxDepth=_maxDepth, _depth=_depth + 1)
    if is_dataclass(value) and not isinstance(value, type):
        return tryJSONify(asdict(value), _maxDepth=_maxDepth, _depth=_depth + 1)
    if isinstance(value, Mapping):
        return {str(key): tryJSONify(val, _maxDepth=_maxDepth, _depth=_depth + 1) for key, val in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [tryJSONify(item, _maxDepth=_maxDepth, _depth=_depth + 1) for item in value]
    return repr(value)



def safeJsonDumps(obj: object) -> str:
    """
    Serializes `obj` to a compact JSON string (separators ",", ":", no NaN, UTF-8 kept as-is).
    If direct encoding fails, falls back to tryJSONify and retries.
    """
    try:
        return json.dumps(obj, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return json.dumps(tryJSONify(obj), ensure_ascii=False, allow_nan=False, separators=(",", ":"))
