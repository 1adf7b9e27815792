"""Server component bootstrap and logging setup for rtcsignal."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rtcsignal.config.schema import Config
from rtcsignal.connections.auth import Authorizer
from rtcsignal.connections.peer import PeerFactory
from rtcsignal.connections.registry import ConnectionRegistry
from rtcsignal.server.router import SignalingRouter

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_server_logging(
    log_dir: Path | None,
    level: int = logging.INFO,
    console_level: int = logging.WARNING,
) -> Path | None:
    """Configure logging for the rtcsignal namespace.

    Console output goes to stderr at console_level. When log_dir is given,
    a rotating ``{log_dir}/server.log`` (5MB x 3 backups) receives
    everything at level and above.

    Returns:
        Path to the server.log file, or None without a log_dir.
    """
    handlers: list[logging.Handler] = []
    log_file: Path | None = None

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "server.log"
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    handlers.append(console_handler)

    rtc_logger = logging.getLogger("rtcsignal")
    rtc_logger.setLevel(min(level, console_level))

    # Remove any existing handlers to avoid duplicates on reconfigure
    rtc_logger.handlers.clear()
    for handler in handlers:
        rtc_logger.addHandler(handler)

    # Don't propagate to root logger
    rtc_logger.propagate = False

    if log_file is not None:
        logger.info("Server logging configured: %s", log_file)
    return log_file


def bootstrap_router(
    config: Config,
    peer_factory: PeerFactory,
    authorizer: Authorizer | None = None,
) -> SignalingRouter:
    """Build the registry and router from configuration."""
    registry = ConnectionRegistry(peer_factory=peer_factory, authorizer=authorizer)
    return SignalingRouter(registry, prefix=config.prefix, cors=config.cors)
