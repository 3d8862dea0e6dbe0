"""Command-line entry point: load configuration, start the loop, serve /metrics."""

import argparse
import sys
from typing import List, Optional

import uvicorn

from statusprobe.clients.base_http_client import BaseHTTPClient
from statusprobe.config.settings import Settings
from statusprobe.config.targets import load_credentials, load_targets, parse_listen_addr
from statusprobe.core.exceptions.exceptions import ConfigurationError, ListenError
from statusprobe.jobs.probe_loop import ProbeLoop
from statusprobe.main import create_app
from statusprobe.middleware.auth import static_credential_check
from statusprobe.services.metrics_state import MetricsState
from statusprobe.services.prober_service import ProberService
from statusprobe.utils.log import app_logger


def parse_args(args: Optional[List[str]] = None, defaults: Optional[Settings] = None) -> argparse.Namespace:
    """Flags override environment settings, which override built-in defaults."""
    defaults = defaults or Settings()
    parser = argparse.ArgumentParser(
        prog="statusprobe",
        description="Probe HTTP targets periodically and export their status codes for Prometheus.",
    )
    parser.add_argument("--config", default=defaults.CONFIG_PATH,
                        help=f"target list JSON file (default: {defaults.CONFIG_PATH})")
    parser.add_argument("--auth", default=defaults.AUTH_PATH,
                        help=f"Basic-Auth credentials JSON file (default: {defaults.AUTH_PATH})")
    parser.add_argument("--addr", default=defaults.LISTEN_ADDR,
                        help=f"listen address host:port (default: {defaults.LISTEN_ADDR})")
    parser.add_argument("--log-level", default=defaults.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], type=str.upper,
                        help=f"log level (default: {defaults.LOG_LEVEL})")
    parser.add_argument("--workers", type=int, default=defaults.PROBE_MAX_WORKERS,
                        help="concurrent probes per sweep; 1 probes serially in file order")
    return parser.parse_args(args)


def serve(host: str, port: int, app) -> None:
    config = uvicorn.Config(app, host=host, port=port, log_config=None, access_log=False)
    server = uvicorn.Server(config)
    try:
        server.run()
    except OSError as e:
        raise ListenError(f"{host}:{port}", e.strerror or str(e))
    except SystemExit as e:
        # uvicorn exits with status 1 when the socket cannot be bound
        if e.code:
            raise ListenError(f"{host}:{port}", "bind failed")
        raise


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings()
    opts = parse_args(argv, settings)
    app_logger.set_level(opts.log_level)

    try:
        registry = load_targets(opts.config)
        credentials = load_credentials(opts.auth)
        host, port = parse_listen_addr(opts.addr)
        if opts.workers < 1:
            raise ConfigurationError("--workers", "must be >= 1")
    except ConfigurationError as e:
        app_logger.error("config.invalid", source=e.source, error=e.detail)
        return 1

    state = MetricsState()
    prober = ProberService(http_client=BaseHTTPClient(user_agent=settings.USER_AGENT, pool_maxsize=max(opts.workers, 10)))
    loop = ProbeLoop(registry, state, prober.probe, max_workers=opts.workers)
    app = create_app(state, static_credential_check(credentials), loop=loop)

    app_logger.info(
        "startup.listening",
        addr=opts.addr,
        interval_seconds=registry.settings.interval_seconds,
        timeout_seconds=registry.settings.timeout_seconds,
    )
    try:
        serve(host, port, app)
    except ListenError as e:
        app_logger.error("startup.listen_failed", addr=e.addr, error=e.message)
        return 1
    finally:
        prober.close()
    return 0


def run() -> None:
    sys.exit(main())
