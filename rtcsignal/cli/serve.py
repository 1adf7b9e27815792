"""Standalone signaling server mode.

Runs the interception adapter on its own listener with the bundled aiortc
peer engine. Hosts that embed the signaling layer build a router themselves
and never go through this module.

Example:
    rtcsignal serve --port 9208 --api-key rsk_...

    curl -X POST http://127.0.0.1:9208/.wrtc/v2/connections \\
        -H "Authorization: Bearer rsk_..."
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from rtcsignal.cli.bootstrap import bootstrap_router, configure_server_logging
from rtcsignal.cli.output import print_error, print_server_banner
from rtcsignal.config.loader import load_config
from rtcsignal.config.schema import Config
from rtcsignal.connections.auth import BearerTokenAuthorizer
from rtcsignal.core.errors import SignalError
from rtcsignal.server.interception import run_signaling_server

# Load .env file if present
load_dotenv()

API_KEY_ENV = "RTCSIGNAL_API_KEY"

logger = logging.getLogger(__name__)


async def run_serve(
    host: str | None = None,
    port: int | None = None,
    prefix: str | None = None,
    config_path: Path | None = None,
    api_key: str | None = None,
    log_dir: Path | None = None,
    verbose: bool = False,
) -> int:
    """Run the standalone signaling server until interrupted.

    Command-line values override the loaded configuration. Without an API
    key (argument or RTCSIGNAL_API_KEY) connection creation is open.

    Returns:
        Process exit code.
    """
    try:
        config = load_config(config_path)
        overrides = {
            key: value
            for key, value in (("host", host), ("port", port))
            if value is not None
        }
        if overrides:
            config = config.model_copy(
                update={"server": config.server.model_copy(update=overrides)}
            )
        if prefix is not None:
            config = Config.model_validate({**config.model_dump(), "prefix": prefix})
    except SignalError as e:
        print_error(f"Configuration error: {e.message}")
        return 1
    except ValueError as e:
        print_error(f"Configuration error: {e}")
        return 1

    level = getattr(logging, config.server.log_level)
    console_level = logging.DEBUG if verbose else logging.WARNING
    server_log_file = configure_server_logging(log_dir, level=level, console_level=console_level)

    try:
        from rtcsignal.connections.aiortc_peer import aiortc_peer_factory
    except ImportError:
        print_error("The standalone server needs aiortc: pip install 'rtcsignal[aiortc]'")
        return 1

    effective_key = api_key or os.environ.get(API_KEY_ENV) or None
    authorizer = BearerTokenAuthorizer(effective_key) if effective_key else None

    router = bootstrap_router(
        config,
        peer_factory=aiortc_peer_factory(config.ice_servers),
        authorizer=authorizer,
    )
    logger.info(
        "Standalone server: prefix=%s, auth=%s", config.prefix, "bearer" if authorizer else "open"
    )

    started_event = asyncio.Event()

    def announce(bound_host: str, bound_port: int) -> None:
        print_server_banner(
            f"http://{bound_host}:{bound_port}{config.prefix}",
            auth_required=authorizer is not None,
            log_file=server_log_file,
        )

    # Start server as a task so we can wait for bind success
    server_task = asyncio.create_task(
        run_signaling_server(
            router,
            host=config.server.host,
            port=config.server.port,
            max_body_size=config.server.max_body_size,
            max_concurrent=config.server.max_concurrent,
            started_event=started_event,
            on_started=announce,
        )
    )

    try:
        try:
            await asyncio.wait_for(started_event.wait(), timeout=5.0)
        except TimeoutError:
            server_task.cancel()
            try:
                await server_task
            except asyncio.CancelledError:
                pass
            print_error("Server failed to start (bind timeout)")
            return 1

        await server_task

    except asyncio.CancelledError:
        server_task.cancel()
        try:
            await server_task
        except asyncio.CancelledError:
            pass
        raise

    except OSError as e:
        print_error(f"Server failed to start: {e}")
        return 1

    return 0
