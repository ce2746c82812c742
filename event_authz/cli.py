"""
event_authz.cli
---------------
Entry point: loads settings, opens the account directory and serves the
decision RPC and (when an api key is configured) the control API.
"""

from __future__ import annotations
import argparse
import asyncio
from typing import List, Optional

import uvicorn

from event_authz.api import create_control_app, create_rpc_app
from event_authz.config import load_settings
from event_authz.directory import load_directory
from event_authz.engine import DecisionEngine
from event_authz.logger import configure_logging, get_logger

log = get_logger("event_authz.cli")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="event-authz", description="Relay event admission oracle")
    p.add_argument("--config", default=None, help="path to config.toml")
    p.add_argument("--db", default=None, help="SQLite path, overrides db_path")
    p.add_argument("--directory", choices=["local", "relay"], default=None,
                   help="account directory backend")
    return p


def build_servers(settings, directory) -> List[uvicorn.Server]:
    engine = DecisionEngine.from_settings(settings, directory)
    servers = [uvicorn.Server(uvicorn.Config(
        create_rpc_app(engine),
        host=settings.grpc_listen_host,
        port=settings.grpc_listen_port,
        log_config=None,
    ))]
    if settings.api_key:
        servers.append(uvicorn.Server(uvicorn.Config(
            create_control_app(directory, settings.api_key),
            host=settings.api_listen_host,
            port=settings.api_listen_port,
            log_config=None,
        )))
        log.info(f"control API listening on {settings.api_listen_host}:{settings.api_listen_port}")
    else:
        log.info("no api_key configured, control API disabled")
    return servers


async def serve(servers: List[uvicorn.Server]) -> None:
    await asyncio.gather(*(s.serve() for s in servers))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config, db_path=args.db, directory=args.directory)
    configure_logging(settings.log_level, settings.log_file)

    directory = load_directory(settings)
    try:
        servers = build_servers(settings, directory)
        log.info(f"EventAuthz server listening on {settings.grpc_listen_host}:{settings.grpc_listen_port}")
        asyncio.run(serve(servers))
    finally:
        directory.close()
    return 0
