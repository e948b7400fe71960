"""Canonical JSON serialization and content hashing.

Records are content-addressed: their identity is the SHA-256 of the canonical
JSON form of their data. Canonical form means object keys sorted at every
nesting level, arrays kept in order, no insignificant whitespace.

A key holding ``None`` serializes as ``null`` and is NOT equivalent to the key
being absent, so callers building optional fields must omit them rather than
set them to ``None`` when they mean "not provided".
"""

from __future__ import annotations

import hashlib
import json
import math
from typing import Any

from pydantic import BaseModel


def _normalize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return _normalize(value.model_dump(mode="json", exclude_unset=True))
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        # JSON has a single number type: 3.0 and 3 must hash the same
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return int(value)
    return value


def canonicalize(value: Any) -> str:
    """Serialize ``value`` to its canonical JSON string."""
    return json.dumps(
        _normalize(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def content_hash(value: Any) -> str:
    """Lowercase hex SHA-256 of the UTF-8 canonical JSON of ``value``."""
    return sha256_hex(canonicalize(value).encode("utf-8"))
