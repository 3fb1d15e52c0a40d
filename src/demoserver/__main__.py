"""
=============================================================================
DEMOSERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (0.0.0.0:3000, or $PORT)
    python -m demoserver

    # Custom port
    python -m demoserver --port 8080
    PORT=8080 python -m demoserver

    # More worker threads, chattier logs
    python -m demoserver --workers 8 --log-level DEBUG

Command-line flags override environment variables, which override the
defaults in ServerConfig.

Exit status is 0 after a clean shutdown (SIGTERM, SIGINT) and 1 when the
port cannot be bound.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .app import create_app
from .config import ServerConfig, LOG_LEVELS
from .errors import ServerBindError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="demoserver",
        description="Minimal HTTP demo service with health, info and metrics endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  PORT        Port to listen on (default: 3000)
  HOST        Host to bind to (default: 0.0.0.0)
  APP_ENV     Deployment environment label (default: development)
  LOG_LEVEL   Logging level (default: INFO)
  WORKERS     Worker threads (default: 4)
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: $HOST or 0.0.0.0)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: $PORT or 3000)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE / LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Number of worker threads (default: $WORKERS or 4, max will be 2x this)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        type=str.upper,
        default=None,
        help="Logging level (default: $LOG_LEVEL or INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"demoserver {__version__}"
    )

    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then explicit flags on top."""
    config = ServerConfig.from_env()

    if args.host:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.min_workers = args.workers
        config.max_workers = args.workers * 2
    if args.log_level:
        config.log_level = args.log_level
    if args.log_format:
        config.log_format = args.log_format

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns 0 after a clean shutdown; exits with status 1 when the port
    cannot be bound or the configuration is invalid.
    """
    args = build_parser().parse_args(argv)
    config = build_config(args)

    try:
        server = create_app(config)
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        server.run()
    except ServerBindError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    return 0


if __name__ == "__main__":
    sys.exit(main())
