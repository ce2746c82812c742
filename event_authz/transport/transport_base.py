from __future__ import annotations
from typing import Any, Dict, List, Optional

from event_authz.event import Event

Filter = Dict[str, Any]


class RelayError(Exception):
    pass


class RelayTransientError(RelayError):
    pass


class RelayTimeoutError(RelayTransientError):
    pass


class RelayPermanentError(RelayError):
    pass


class BaseRelay:
    """
    Relay network contract used by the replicated directory.

    publish() returns the relays that accepted the event and raises
    RelayError when none did. query() returns matching events gathered
    until every relay signalled end-of-stored-events or the timeout expired.
    """
    name: str = "base"

    def publish(self, event: Event, timeout: Optional[float] = None) -> List[str]:
        raise NotImplementedError

    def query(self, flt: Filter, timeout: Optional[float] = None) -> List[Event]:
        raise NotImplementedError

    def readyz(self) -> dict:
        return {"status": "ok", "transport": self.name}

    def close(self) -> None:
        return
