# event_authz/directory/__init__.py

from .models import Account, BatchResult, Snapshot, Status, parse_identity
from .provider import AccountDirectory
from .guarded import GuardedDirectory
from .providers.sqlite_provider import LocalDirectory
from .providers.relay_provider import ReplicatedDirectory
from event_authz.config import Settings
from event_authz.crypto import Keypair
from event_authz.errors import ConfigError
from event_authz.logger import get_logger

log = get_logger("event_authz.directory")


def load_directory(settings: Settings, relay=None) -> GuardedDirectory:
    """
    Factory resolver for the runtime directory backend.

        - local (default): SQLite file at settings.db_path
        - relay: lists replicated on settings.relays, restored before returning
    """
    if settings.directory == "local":
        backend = LocalDirectory(settings.db_path)

    elif settings.directory == "relay":
        if not settings.private_key:
            raise ConfigError("relay directory requires private_key")
        try:
            keys = Keypair.from_hex(settings.private_key)
        except ValueError as e:
            raise ConfigError(f"bad private_key: {e}") from e
        if relay is None:
            from event_authz.transport import relay_factory
            relay = relay_factory(settings)
        backend = ReplicatedDirectory(
            keys,
            relay,
            admin_keys=settings.admin_keys,
            restore_timeout=settings.restore_timeout,
            publish_timeout=settings.publish_timeout,
        )
        backend.restore()

    else:
        raise ConfigError(f"Unknown directory backend: {settings.directory}")

    log.info(f"account directory backend: {backend.name}")
    return GuardedDirectory(backend)


__all__ = [
    "Account",
    "AccountDirectory",
    "BatchResult",
    "GuardedDirectory",
    "LocalDirectory",
    "ReplicatedDirectory",
    "Snapshot",
    "Status",
    "load_directory",
    "parse_identity",
]
