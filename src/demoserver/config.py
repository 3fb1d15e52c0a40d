"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All settings in one dataclass, populated once at startup and handed to the
server constructor. Nothing reads the environment after that.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    Priority (highest to lowest):

    1. Command-line arguments        python -m demoserver --port 8080
    2. Environment variables         PORT=8080 python -m demoserver
    3. Defaults in ServerConfig      port 3000

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    PORT        Listening port (default 3000; invalid values fall back)
    HOST        Bind address (default 0.0.0.0, reachable inside containers)
    APP_ENV     Deployment environment label (default "development").
                Logged at startup only, changes no behavior.
    LOG_LEVEL   DEBUG, INFO, WARNING, ERROR (default INFO)
    WORKERS     Minimum worker threads (default 4, max is twice that)

=============================================================================
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional


logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000

# Sent on every response, including errors produced before routing
DEFAULT_RESPONSE_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "X-Content-Type-Options": "nosniff",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the demo server.

    NETWORK   host, port, backlog, buffer_size, timeout
    HTTP      keep_alive, keep_alive_timeout, max_request_size,
              response_headers
    THREADS   min_workers, max_workers
    LOGGING   log_level, log_format
    IDENTITY  environment, server_name

    Tests use port=0 to let the OS pick a free port.
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT

    backlog: int = 128
    """Maximum queued connections before the kernel refuses new ones."""

    buffer_size: int = 8192

    timeout: Optional[float] = 30.0
    """Seconds to wait for the first request on a connection."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024  # 1 MB, no route takes a body

    response_headers: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_RESPONSE_HEADERS)
    )

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 8
    queue_size: int = 100

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: 'text' (Apache style) or 'json'."""

    environment: str = "development"
    server_name: str = "demoserver/1.0"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Build a configuration from environment variables.

        Invalid values never abort startup: they are logged and replaced
        with the default. An unset or unparsable PORT means port 3000.

        Args:
            environ: Mapping to read instead of os.environ (for tests).
        """
        env = os.environ if environ is None else environ

        workers = _int_setting(env, "WORKERS", 4, minimum=1)
        log_level = env.get("LOG_LEVEL", "INFO").upper()
        if log_level not in LOG_LEVELS:
            logger.warning(f"Ignoring invalid LOG_LEVEL={log_level!r}, using INFO")
            log_level = "INFO"

        return cls(
            host=env.get("HOST", "0.0.0.0") or "0.0.0.0",
            port=parse_port(env.get("PORT")),
            min_workers=workers,
            max_workers=workers * 2,
            log_level=log_level,
            environment=env.get("APP_ENV", "development") or "development",
        )

    def validate(self) -> None:
        """
        Fail fast on inconsistent settings.

        Raises:
            ValueError: Describing the first invalid setting found.
        """
        # port 0 asks the OS for an ephemeral port
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.keep_alive_timeout <= 0:
            raise ValueError("keep_alive_timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")


def parse_port(value: Optional[str], default: int = DEFAULT_PORT) -> int:
    """
    Interpret a PORT value.

    Returns the default when the value is missing, not an integer, or
    outside 1-65535.

        parse_port("8080")  → 8080
        parse_port(None)    → 3000
        parse_port("http")  → 3000
        parse_port("70000") → 3000
    """
    if value is None or not value.strip():
        return default

    try:
        port = int(value.strip())
    except ValueError:
        logger.warning(f"Ignoring non-numeric PORT={value!r}, using {default}")
        return default

    if not 0 < port < 65536:
        logger.warning(f"Ignoring out-of-range PORT={port}, using {default}")
        return default

    return port


def _int_setting(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default
    if value < minimum:
        logger.warning(f"Ignoring {name}={value} (minimum {minimum}), using {default}")
        return default
    return value
