"""Argument parsing for the rtcsignal CLI."""

import argparse
from pathlib import Path


def add_prefix_arg(parser: argparse.ArgumentParser) -> None:
    """Add the --prefix argument shared by subcommands."""
    parser.add_argument(
        "--prefix",
        help="Signaling route prefix (default: /.wrtc/v2)",
    )


def add_config_arg(parser: argparse.ArgumentParser) -> None:
    """Add the --config argument."""
    parser.add_argument(
        "--config",
        type=Path,
        help="Explicit config file (skips layered config loading)",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="rtcsignal",
        description="HTTP signaling server for peer-to-peer transport sessions",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run a standalone signaling server (requires the aiortc extra)",
    )
    serve_parser.add_argument("--host", help="Host to bind to (default: from config)")
    serve_parser.add_argument(
        "--port", "-p",
        type=int,
        help="Port to listen on (default: from config, 9208)",
    )
    serve_parser.add_argument(
        "--api-key",
        dest="api_key",
        help="Require Authorization: Bearer <key> on connection creation "
             "(default: RTCSIGNAL_API_KEY env var, unauthenticated if unset)",
    )
    serve_parser.add_argument(
        "--log-dir",
        type=Path,
        help="Directory for server.log (default: console only)",
    )
    serve_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable DEBUG output on the console",
    )
    add_prefix_arg(serve_parser)
    add_config_arg(serve_parser)

    probe_parser = subparsers.add_parser(
        "probe",
        help="Create and close one connection against a running server",
    )
    probe_parser.add_argument(
        "--url",
        default="http://127.0.0.1:9208",
        help="Server base URL (default: http://127.0.0.1:9208)",
    )
    probe_parser.add_argument("--api-key", dest="api_key", help="API key for connection creation")
    add_prefix_arg(probe_parser)

    return parser.parse_args(argv)
