# event_authz/errors.py
from __future__ import annotations


class AuthzError(Exception):
    pass


class InvalidIdentity(AuthzError, ValueError):
    """Value is not a 32-byte public key in hex or raw form."""

    def __init__(self, value, reason: str = "not a 64 character hex key"):
        self.value = value
        self.reason = reason
        super().__init__(f"invalid identity {value!r}: {reason}")


class ConfigError(AuthzError):
    pass


class DirectoryError(AuthzError):
    pass


class StorageError(DirectoryError):
    pass


class PublishError(DirectoryError):
    pass


class DecisionError(AuthzError):
    """The engine could not reach a verdict. Never a Deny."""
    pass
