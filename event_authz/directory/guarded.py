# event_authz/directory/guarded.py
from __future__ import annotations
import threading
from typing import Iterable, Optional, Sequence

from event_authz.constants import LABEL_ALLOW
from event_authz.directory.models import Account, BatchResult, Snapshot, Status, parse_identity
from event_authz.directory.provider import AccountDirectory
from event_authz.logger import get_logger

log = get_logger("event_authz.directory")


class GuardedDirectory:
    """
    The one entry point to an AccountDirectory.

    Every operation holds a single exclusive lock for its whole duration,
    network publication included, so no reader sees half of a batch. The
    decision engine and the control API must share one instance.
    """

    def __init__(self, backend: AccountDirectory):
        self.backend = backend
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return getattr(self.backend, "name", type(self.backend).__name__)

    def get(self, identity) -> Optional[Status]:
        with self._lock:
            return self.backend.get(identity)

    def account(self, identity) -> Optional[Account]:
        """The Account record for identity, or None when it is unknown or malformed."""
        status = self.get(identity)
        if status is None:
            return None
        return Account(parse_identity(identity), status)

    def admit(self, identities: Iterable) -> BatchResult:
        with self._lock:
            return self.backend.admit(list(identities))

    def deny(self, identities: Iterable) -> BatchResult:
        with self._lock:
            return self.backend.deny(list(identities))

    def apply(self, directives: Sequence) -> BatchResult:
        """Apply admin directives in order under one lock acquisition."""
        result = BatchResult()
        with self._lock:
            for directive in directives:
                if not directive.identities:
                    log.debug(f"empty {directive.action} directive, nothing to do")
                    continue
                if directive.action == LABEL_ALLOW:
                    result.merge(self.backend.admit(list(directive.identities)))
                else:
                    result.merge(self.backend.deny(list(directive.identities)))
        return result

    def snapshot(self) -> Snapshot:
        with self._lock:
            return self.backend.snapshot()

    def readyz(self) -> dict:
        with self._lock:
            state = self.backend.readyz()
        # relay readiness is network I/O: checked after releasing the lock
        relay = getattr(self.backend, "relay", None)
        if relay is not None:
            state["relay"] = relay.readyz()
        return state

    def close(self) -> None:
        with self._lock:
            self.backend.close()
