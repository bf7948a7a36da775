from __future__ import annotations

import base64
import json
from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Mapping, Optional, Set
from uuid import UUID

from pydantic import BaseModel


def to_jsonable(obj: Any, *, _seen: Optional[Set[int]] = None) -> Any:
    """
    Convert common Python objects to JSON-serializable equivalents.

    Unlike a lenient dumper, unknown objects are NOT stringified: they raise
    TypeError. Self-referencing containers raise ValueError.

    - pydantic models are dumped in JSON mode
    - bytes are base64-encoded to avoid binary injection / encoding issues
    - datetimes become ISO 8601 strings

    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, Enum):
        return to_jsonable(obj.value, _seen=_seen)

    # datetime/date/time -> ISO 8601 (keeps timezone info if present)
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()

    if isinstance(obj, (PurePath, UUID)):
        return str(obj)

    if isinstance(obj, Decimal):
        return float(obj)

    if isinstance(obj, (bytes, bytearray)):
        return {"__bytes_b64__": base64.b64encode(bytes(obj)).decode("ascii")}

    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")

    seen = _seen if _seen is not None else set()
    if id(obj) in seen:
        raise ValueError("circular reference detected")

    if is_dataclass(obj) and not isinstance(obj, type):
        seen.add(id(obj))
        try:
            return {f.name: to_jsonable(getattr(obj, f.name), _seen=seen) for f in fields(obj)}
        finally:
            seen.discard(id(obj))

    if isinstance(obj, Mapping):
        seen.add(id(obj))
        try:
            return {str(k): to_jsonable(v, _seen=seen) for k, v in obj.items()}
        finally:
            seen.discard(id(obj))

    # iterables (including set/frozenset/tuple/list)
    if isinstance(obj, (list, tuple, set, frozenset)):
        seen.add(id(obj))
        try:
            return [to_jsonable(x, _seen=seen) for x in obj]
        finally:
            seen.discard(id(obj))

    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


def dumps_strict(obj: Any) -> bytes:
    """Serialize obj to compact UTF-8 JSON bytes.

    Raises TypeError / ValueError when obj cannot be represented.

    """

    return json.dumps(
        to_jsonable(obj), ensure_ascii=False, allow_nan=False, separators=(",", ":")
    ).encode("utf-8")
