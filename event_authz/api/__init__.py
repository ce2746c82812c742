# event_authz/api/__init__.py
from .control import create_control_app
from .rpc import create_rpc_app

__all__ = ["create_control_app", "create_rpc_app"]
