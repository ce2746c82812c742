"""
event_authz.event
-----------------
The relay network's message container.

Key features:
- Deterministic id: sha256 over [0, pubkey, created_at, kind, tags, content]
- Ed25519 signature over the raw id bytes
- Relay filter matching (ids, authors, kinds, since, until, #<tag>)
"""

from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional

from .crypto import ed25519_verify, Keypair
from .utils import canonical_json, sha256, unix_time


@dataclass
class Event:
    pubkey: str = ""
    kind: int = 1
    tags: List[List[str]] = field(default_factory=list)
    content: str = ""
    created_at: int = field(default_factory=unix_time)
    id: str = ""
    sig: str = ""

    def serialize(self) -> bytes:
        return canonical_json([0, self.pubkey, self.created_at, self.kind, self.tags, self.content])

    def compute_id(self) -> str:
        return sha256(self.serialize())

    def sign(self, keys: Keypair) -> "Event":
        self.pubkey = keys.pubkey
        self.id = self.compute_id()
        self.sig = keys.sign(bytes.fromhex(self.id)).hex()
        return self

    def verify(self) -> bool:
        try:
            if self.id != self.compute_id():
                return False
            return ed25519_verify(bytes.fromhex(self.pubkey), bytes.fromhex(self.sig), bytes.fromhex(self.id))
        except ValueError:
            return False

    def tag_values(self, name: str) -> List[str]:
        """Second element of every tag named ``name``."""
        return [t[1] for t in self.tags if len(t) > 1 and t[0] == name]

    def matches(self, flt: Dict[str, Any]) -> bool:
        if "ids" in flt and self.id not in flt["ids"]:
            return False
        if "authors" in flt and self.pubkey not in flt["authors"]:
            return False
        if "kinds" in flt and self.kind not in flt["kinds"]:
            return False
        if "since" in flt and self.created_at < flt["since"]:
            return False
        if "until" in flt and self.created_at > flt["until"]:
            return False
        for key, wanted in flt.items():
            if key.startswith("#") and len(key) == 2:
                if not set(self.tag_values(key[1])) & set(wanted):
                    return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        return cls(
            id=data.get("id", ""),
            pubkey=data.get("pubkey", ""),
            created_at=int(data.get("created_at", 0)),
            kind=int(data.get("kind", 0)),
            tags=[[str(v) for v in t] for t in data.get("tags", [])],
            content=data.get("content", ""),
            sig=data.get("sig", ""),
        )

    @staticmethod
    def make(keys: Keypair, kind: int, tags: List[List[str]], content: str = "", created_at: Optional[int] = None) -> "Event":
        """Factory for a signed event authored by ``keys``."""
        ev = Event(kind=kind, tags=tags, content=content,
                   created_at=unix_time() if created_at is None else created_at)
        return ev.sign(keys)
