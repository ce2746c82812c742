# event_authz/transport/transport_local.py
from __future__ import annotations
import threading
from typing import Dict, List, Optional

from event_authz.event import Event
from event_authz.logger import get_logger
from event_authz.transport.transport_base import BaseRelay, Filter, RelayPermanentError

log = get_logger("event_authz.transport.local")


class LocalRelay(BaseRelay):
    """In-process relay: keeps every published event in memory."""

    name = "local"

    def __init__(self, url: str = "local://"):
        self.url = url
        self.events: Dict[str, Event] = {}
        self._lock = threading.Lock()

    def publish(self, event: Event, timeout: Optional[float] = None) -> List[str]:
        if not event.verify():
            raise RelayPermanentError(f"invalid: bad signature for {event.id}")
        with self._lock:
            self.events[event.id] = event
        log.debug(f"LOCAL PUB kind={event.kind} id={event.id}")
        return [self.url]

    def query(self, flt: Filter, timeout: Optional[float] = None) -> List[Event]:
        with self._lock:
            found = [ev for ev in self.events.values() if ev.matches(flt)]
        found.sort(key=lambda ev: ev.created_at, reverse=True)
        limit = flt.get("limit")
        return found[:limit] if limit else found
