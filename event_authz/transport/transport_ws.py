# event_authz/transport/transport_ws.py
import json, time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import requests
import websocket

from event_authz.event import Event
from event_authz.logger import get_logger
from event_authz.transport.transport_base import (
    BaseRelay, Filter, RelayError, RelayPermanentError, RelayTimeoutError, RelayTransientError,
)
from event_authz.utils import new_id

log = get_logger("event_authz.transport.ws")

DEFAULT_TIMEOUT = 10.0


def info_url(relay_url: str) -> str:
    if relay_url.startswith("wss://"):
        return "https://" + relay_url[len("wss://"):]
    if relay_url.startswith("ws://"):
        return "http://" + relay_url[len("ws://"):]
    return relay_url


class WebSocketRelayPool(BaseRelay):
    """
    Websocket relays speaking the EVENT / REQ / EOSE / OK / CLOSE protocol.

    Each operation opens a short-lived connection per relay and talks to all
    relays in parallel; the timeout bounds the whole operation.
    """

    name = "ws"

    def __init__(self, relays: List[str], connect=None):
        if not relays:
            raise ValueError("at least one relay url is required")
        self.relays = list(relays)
        self._connect = connect or websocket.create_connection
        self._pool = ThreadPoolExecutor(max_workers=max(4, len(self.relays)),
                                        thread_name_prefix="relay")

    # ------------------------------------------------------------------
    # Outbound publishing
    # ------------------------------------------------------------------
    def publish(self, event: Event, timeout: Optional[float] = None) -> List[str]:
        deadline = time.monotonic() + (timeout or DEFAULT_TIMEOUT)
        futures = {url: self._pool.submit(self._publish_one, url, event, deadline) for url in self.relays}

        accepted, errors = [], []
        for url, fut in futures.items():
            try:
                fut.result(timeout=max(0.0, deadline - time.monotonic()) + 1.0)
                accepted.append(url)
            except Exception as e:
                errors.append(f"{url}: {e}")
                log.warning(f"[WS PUB] {url} failed for {event.id}: {e}")

        if not accepted:
            raise RelayTransientError("no relay accepted event: " + "; ".join(errors))
        log.info(f"[WS PUB] kind={event.kind} id={event.id} accepted_by={len(accepted)}/{len(self.relays)}")
        return accepted

    def _publish_one(self, url: str, event: Event, deadline: float) -> None:
        ws = self._open(url, deadline)
        try:
            ws.send(json.dumps(["EVENT", event.to_dict()]))
            while True:
                msg = self._recv(ws, url, deadline)
                if len(msg) >= 3 and msg[0] == "OK" and msg[1] == event.id:
                    if not msg[2]:
                        raise RelayPermanentError(msg[3] if len(msg) > 3 else "rejected")
                    return
                if msg and msg[0] == "NOTICE":
                    log.info(f"[WS NOTICE] {url}: {msg[1:]}")
        finally:
            ws.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def query(self, flt: Filter, timeout: Optional[float] = None) -> List[Event]:
        deadline = time.monotonic() + (timeout or DEFAULT_TIMEOUT)
        futures = [self._pool.submit(self._query_one, url, flt, deadline) for url in self.relays]

        seen = {}
        failures = 0
        for fut in futures:
            try:
                events = fut.result(timeout=max(0.0, deadline - time.monotonic()) + 1.0)
            except Exception as e:
                failures += 1
                log.warning(f"[WS REQ] relay query failed: {e}")
                continue
            for ev in events:
                seen.setdefault(ev.id, ev)

        if failures == len(futures):
            raise RelayTransientError("all relays failed to answer query")
        return list(seen.values())

    def _query_one(self, url: str, flt: Filter, deadline: float) -> List[Event]:
        sub_id = new_id()[:16]
        events: List[Event] = []
        ws = self._open(url, deadline)
        try:
            ws.send(json.dumps(["REQ", sub_id, flt]))
            while True:
                try:
                    msg = self._recv(ws, url, deadline)
                except RelayTimeoutError:
                    # timed out before EOSE: keep what arrived
                    log.info(f"[WS REQ] {url} timed out with {len(events)} event(s)")
                    break
                if len(msg) >= 3 and msg[0] == "EVENT" and msg[1] == sub_id:
                    try:
                        events.append(Event.from_dict(msg[2]))
                    except (ValueError, TypeError, KeyError, AttributeError) as e:
                        log.warning(f"[WS REQ] {url} sent a malformed event, skipped: {e}")
                elif len(msg) >= 2 and msg[0] == "EOSE" and msg[1] == sub_id:
                    break
                elif msg and msg[0] == "CLOSED":
                    raise RelayPermanentError(f"subscription closed by {url}: {msg[2:]}")
            try:
                ws.send(json.dumps(["CLOSE", sub_id]))
            except websocket.WebSocketException:
                pass
        finally:
            ws.close()
        return events

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _open(self, url: str, deadline: float):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise RelayTransientError(f"timeout before connecting to {url}")
        try:
            return self._connect(url, timeout=remaining)
        except (OSError, websocket.WebSocketException) as e:
            raise RelayTransientError(f"connect to {url} failed: {e}") from e

    def _recv(self, ws, url: str, deadline: float) -> list:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise RelayTimeoutError(f"timeout waiting for {url}")
        ws.settimeout(remaining)
        try:
            raw = ws.recv()
        except (websocket.WebSocketTimeoutException, TimeoutError) as e:
            raise RelayTimeoutError(f"timeout waiting for {url}") from e
        except (OSError, websocket.WebSocketException) as e:
            raise RelayTransientError(f"connection to {url} lost: {e}") from e
        try:
            msg = json.loads(raw)
        except ValueError:
            log.debug(f"[WS] ignoring non-json frame from {url}")
            return []
        return msg if isinstance(msg, list) else []

    def readyz(self) -> dict:
        relays = {}
        for url in self.relays:
            try:
                res = requests.get(info_url(url), headers={"Accept": "application/nostr+json"}, timeout=5)
                relays[url] = "ok" if res.ok else f"http {res.status_code}"
            except requests.RequestException as e:
                relays[url] = f"error: {e}"
        status = "ok" if any(v == "ok" for v in relays.values()) else "degraded"
        return {"status": status, "transport": self.name, "relays": relays}

    def close(self) -> None:
        self._pool.shutdown(wait=False)
