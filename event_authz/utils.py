"""
event_authz.utils
-----------------
Small helpers for timestamps, base64 and canonical JSON serialization.
Event ids are computed over canonical_json so they must stay deterministic.
"""

from __future__ import annotations
import base64, json, time, uuid, hashlib
from typing import Any


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"))


def unix_time() -> int:
    """Seconds since 1970."""
    return int(time.time())


def new_id() -> str:
    return uuid.uuid4().hex


def canonical_json(obj: Any) -> bytes:
    # compact, no ascii escaping, key order preserved for arrays
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
