# event_authz/directory/provider.py
from __future__ import annotations
from typing import Iterable, Optional, Protocol, runtime_checkable

from .models import BatchResult, Snapshot, Status


@runtime_checkable
class AccountDirectory(Protocol):
    """
    Allow/deny classification per identity.

    Backends implement this structurally (no shared base state):
    - LocalDirectory: SQLite table, one row per identity
    - ReplicatedDirectory: encrypted list documents on the relay network

    get() returns None for Unknown. admit()/deny() accept raw values and
    reject malformed ones per item; they persist or publish before returning.
    """

    def get(self, identity) -> Optional[Status]: ...
    def admit(self, identities: Iterable) -> BatchResult: ...
    def deny(self, identities: Iterable) -> BatchResult: ...
    def snapshot(self) -> Snapshot: ...
    def readyz(self) -> dict: ...
    def close(self) -> None: ...
