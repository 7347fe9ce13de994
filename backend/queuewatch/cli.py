"""Command-line entrypoint: `queuewatch serve`."""

from __future__ import annotations

import argparse
import socket
import sys

import uvicorn

from queuewatch.core.config import settings
from queuewatch.core.logging import configure_logging, get_logger

logger = get_logger(__name__)


class NoFreePortError(RuntimeError):
    """Every candidate port was already bound."""


def find_available_port(host: str, start_port: int, max_attempts: int) -> int:
    """First bindable port in `[start_port, start_port + max_attempts)`."""
    for port in range(start_port, start_port + max_attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError:
                logger.debug("cli.port.in_use", extra={"port": port})
                continue
        return port
    msg = f"Could not find available port after {max_attempts} attempts"
    raise NoFreePortError(msg)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="queuewatch",
        description="Read-only dashboard over the agent task-queue store.",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)
    serve = subcommands.add_parser("serve", help="Run the dashboard HTTP server")
    serve.add_argument("--host", default=settings.host, help="Bind address")
    serve.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help="First port to try; later ports are tried if it is taken",
    )
    serve.add_argument(
        "--reload",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Restart the server process on source changes (uvicorn reloader)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = _parse_args(argv)
    try:
        port = find_available_port(args.host, args.port, settings.port_search_attempts)
    except NoFreePortError as exc:
        logger.error("cli.serve.failed error=%s", exc)
        return 1
    logger.info("Dashboard server running at http://%s:%s", args.host, port)
    uvicorn.run(
        "queuewatch.main:app",
        host=args.host,
        port=port,
        reload=args.reload,
        reload_dirs=[str(path) for path in settings.watch_dirs] if args.reload else None,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
