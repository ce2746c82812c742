import logging, json, sys, time, os
from typing import Optional

ROOT_LOGGER = "event_authz"


def _formatter() -> logging.Formatter:
    formatter = logging.Formatter(
        fmt=json.dumps({
            "ts": "%(asctime)s",
            "level": "%(levelname)s",
            "name": "%(name)s",
            "msg": "%(message)s"
        }),
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    formatter.converter = time.gmtime  # UTC timestamps
    return formatter


def get_logger(name=ROOT_LOGGER, level=None, to_file=None):
    """Structured logger for event_authz components.

    Handlers live on the package root logger only; component loggers
    (event_authz.engine, event_authz.directory, ...) propagate to it.
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)

    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_formatter())
        root.addHandler(handler)
        if root.level == logging.NOTSET:
            root.setLevel(logging.INFO)

    if to_file:
        _add_file_handler(root, to_file)

    return logger


def _add_file_handler(logger: logging.Logger, to_file: str) -> None:
    target = os.path.abspath(to_file)
    for h in logger.handlers:
        if isinstance(h, logging.FileHandler) and h.baseFilename == target:
            return
    dir_path = os.path.dirname(target)
    if dir_path:
        os.makedirs(dir_path, exist_ok=True)
    file_handler = logging.FileHandler(target)
    file_handler.setFormatter(_formatter())
    logger.addHandler(file_handler)


def configure_logging(level: str = "INFO", to_file: Optional[str] = None) -> logging.Logger:
    """Set the package log level once at startup."""
    root = get_logger(ROOT_LOGGER, to_file=to_file)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return root
