"""
Configuration for event_authz.

Settings come from defaults, then an optional TOML file (``[info]`` table),
then ``EVENT_AUTHZ_*`` environment variables, then explicit overrides. The
merged mapping is validated by the pydantic ``Settings`` model.
"""

from __future__ import annotations
import os
import tomllib
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import (
    CONTROL_KIND,
    DEFAULT_CONFIG_FILE,
    DEFAULT_DB_PATH,
    DEFAULT_PUBLISH_TIMEOUT,
    DEFAULT_RESTORE_TIMEOUT,
)
from .errors import ConfigError
from .logger import get_logger

log = get_logger("event_authz.config")

ENV_PREFIX = "EVENT_AUTHZ_"


class Settings(BaseModel):
    private_key: str = ""
    relays: List[str] = Field(default_factory=list)
    relay_mode: str = "ws"               # ws | local
    admin_keys: List[str] = Field(default_factory=list)
    control_kind: int = CONTROL_KIND
    directory: Literal["local", "relay"] = "local"
    db_path: str = DEFAULT_DB_PATH
    implicit_allow: bool = False
    api_key: Optional[str] = None
    api_listen_host: str = "127.0.0.1"
    api_listen_port: int = Field(default=3000, ge=0, le=65535)
    grpc_listen_host: str = "::1"
    grpc_listen_port: int = Field(default=50051, ge=0, le=65535)
    restore_timeout: float = Field(default=DEFAULT_RESTORE_TIMEOUT, gt=0)
    publish_timeout: float = Field(default=DEFAULT_PUBLISH_TIMEOUT, gt=0)
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator("relays", "admin_keys", mode="before")
    @classmethod
    def split_comma_list(cls, v: Any) -> Any:
        # environment variables carry lists as "a,b,c"
        if isinstance(v, str):
            return v.split(",")
        return v

    @field_validator("relays")
    @classmethod
    def clean_relays(cls, v: List[str]) -> List[str]:
        return [r.strip() for r in v if r.strip()]

    @field_validator("admin_keys")
    @classmethod
    def clean_admin_keys(cls, v: List[str]) -> List[str]:
        return [k.strip().lower() for k in v if k.strip()]

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "Settings":
        kwargs = {}
        for key, value in data.items():
            if key not in cls.model_fields:
                log.warning(f"ignoring unknown setting {key}")
                continue
            kwargs[key] = value
        try:
            return cls.model_validate(kwargs)
        except ValidationError as e:
            raise ConfigError(f"invalid configuration: {e}") from e


def read_config_file(path: str) -> Dict[str, Any]:
    with open(path, "rb") as f:
        doc = tomllib.load(f)
    return dict(doc.get("info", doc))


def read_env(environ=None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    out = {}
    for name in Settings.model_fields:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is not None:
            out[name] = raw
    return out


def load_settings(config_file: Optional[str] = None, environ=None, **overrides) -> Settings:
    """Build Settings from file, environment and explicit overrides.

    A missing or unreadable config file is not fatal: a warning is logged
    and the remaining sources still apply. Values of the wrong type raise
    ConfigError.
    """
    data: Dict[str, Any] = {}
    path = config_file or DEFAULT_CONFIG_FILE
    try:
        data.update(read_config_file(path))
    except (OSError, tomllib.TOMLDecodeError) as e:
        log.warning(f"Error reading config file {path} ({e})")

    data.update(read_env(environ))
    data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings.from_mapping(data)
