# event_authz/transport/__init__.py
from event_authz.transport.transport_base import (
    BaseRelay, RelayError, RelayPermanentError, RelayTimeoutError, RelayTransientError,
)
from event_authz.transport.transport_local import LocalRelay
from event_authz.transport.transport_ws import WebSocketRelayPool


def relay_factory(settings) -> BaseRelay:
    """
    relay_mode:
      - "ws"    → websocket relays from settings.relays
      - "local" → in-process loopback relay
    """
    mode = (settings.relay_mode or "ws").lower()
    if mode == "local":
        return LocalRelay()
    if mode == "ws":
        return WebSocketRelayPool(settings.relays)
    raise ValueError(f"Unknown relay mode: {mode}")


__all__ = [
    "BaseRelay",
    "RelayError",
    "RelayPermanentError",
    "RelayTimeoutError",
    "RelayTransientError",
    "LocalRelay",
    "WebSocketRelayPool",
    "relay_factory",
]
