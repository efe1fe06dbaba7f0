"""
licensekey_core.utils
---------------------
Helpers for canonical JSON, hashing and timestamps.
Canonical JSON is what keeps repeated descriptor builds byte-identical.
"""

from __future__ import annotations
import json, time, hashlib
from typing import Any


def now_ts() -> str:
    # RFC3339 / ISO 8601 in UTC, second precision
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def canonical_json(obj: Any) -> bytes:
    # Deterministic, minimal JSON for diffing
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
