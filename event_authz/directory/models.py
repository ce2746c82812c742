# event_authz/directory/models.py
from __future__ import annotations
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import FrozenSet, Iterable, List, Set, Tuple

from event_authz.constants import IDENTITY_BYTES, IDENTITY_HEX_LEN
from event_authz.errors import InvalidIdentity

_HEX = re.compile(r"^[0-9a-f]+$")


def parse_identity(value) -> str:
    """Canonical lowercase hex form of a 32-byte public key."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != IDENTITY_BYTES:
            raise InvalidIdentity(value, f"expected {IDENTITY_BYTES} bytes")
        return bytes(value).hex()
    if not isinstance(value, str):
        raise InvalidIdentity(value, "must be a string")
    v = value.lower()
    if len(v) != IDENTITY_HEX_LEN:
        raise InvalidIdentity(value, f"must be {IDENTITY_HEX_LEN} characters")
    if not _HEX.match(v):
        raise InvalidIdentity(value, "must be hexadecimal")
    return v


def partition_identities(values: Iterable) -> Tuple[List[str], List]:
    """Split raw inputs into (valid canonical ids in first-seen order, rejected raw values)."""
    valid, rejected, seen = [], [], set()
    for raw in values:
        try:
            ident = parse_identity(raw)
        except InvalidIdentity:
            rejected.append(raw)
            continue
        if ident not in seen:
            seen.add(ident)
            valid.append(ident)
    return valid, rejected


class Status(IntEnum):
    DENY = 0
    ALLOW = 1

    @classmethod
    def from_byte(cls, value) -> "Status":
        # anything that is not exactly 1 is treated as a denial
        return cls.ALLOW if value == 1 else cls.DENY


@dataclass(frozen=True)
class Account:
    pubkey: str
    status: Status

    def is_admitted(self) -> bool:
        return self.status == Status.ALLOW


@dataclass(frozen=True)
class Snapshot:
    allow: FrozenSet[str] = frozenset()
    deny: FrozenSet[str] = frozenset()

    def to_dict(self):
        return {"allow": sorted(self.allow), "deny": sorted(self.deny)}


@dataclass
class BatchResult:
    applied: Set[str] = field(default_factory=set)
    rejected: List = field(default_factory=list)

    def merge(self, other: "BatchResult") -> "BatchResult":
        self.applied |= other.applied
        self.rejected.extend(other.rejected)
        return self
