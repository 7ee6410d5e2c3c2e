#!/usr/bin/env python3
"""
run_checker.py - CLI entrypoint for the provider health checker.

Every pass loads the configuration from scratch, validates all chains
against their reference providers and rewrites the valid-provider file.
Between passes the file is served over HTTP.

Usage:
    python run_checker.py
    python run_checker.py --once --no-server
    python run_checker.py --checker-config config/checker_config.json --port 9000
"""

import asyncio
import signal
import sys
from dataclasses import replace
from typing import Optional

import click
import uvicorn
from dotenv import load_dotenv

from chains.transport import MethodCaller, RPCTransport
from checker.runner import ChainValidationRunner, PassSummary
from config import CheckerConfig, load_checker_config
from core.exceptions import HealthCheckerError
from core.logging import get_logger, log_error, setup_logging, set_global_context
from server.app import create_app

logger = get_logger("checker.cli")

# Graceful shutdown flag
_shutdown_requested = False


def handle_shutdown(signum: int, frame: object) -> None:
    """Handle shutdown signals."""
    global _shutdown_requested
    _shutdown_requested = True
    logger.info("Shutdown requested", extra={"context": {"signal": signum}})


def _stopping(server: Optional[uvicorn.Server]) -> bool:
    return _shutdown_requested or (server is not None and server.should_exit)


async def run_pass(config: CheckerConfig, caller: MethodCaller) -> Optional[PassSummary]:
    """
    Run one validation pass with a freshly loaded configuration.

    Returns:
        Pass summary, or None if the configuration could not be loaded
    """
    try:
        runner = ChainValidationRunner.from_config(config, caller)
    except HealthCheckerError as e:
        log_error(logger, e.code.value, f"Skipping pass: {e.message}", **e.details)
        return None

    await runner.run()
    return runner.last_summary


async def check_loop(
    config: CheckerConfig,
    once: bool = False,
    server: Optional[uvicorn.Server] = None,
) -> int:
    """
    Run passes until shutdown (or once).

    Returns:
        Number of passes that completed
    """
    passes = 0
    async with RPCTransport() as transport:
        while not _stopping(server):
            summary = await run_pass(config, transport)
            if summary is not None:
                passes += 1
            if once:
                break

            # Sleep in short steps so shutdown is noticed promptly
            remaining = float(config.interval_seconds)
            while remaining > 0 and not _stopping(server):
                step = min(1.0, remaining)
                await asyncio.sleep(step)
                remaining -= step

        logger.info(
            "Transport stats",
            extra={"context": {"providers": transport.get_stats_summary()}},
        )

    if server is not None:
        server.should_exit = True
    return passes


async def serve_and_check(config: CheckerConfig) -> None:
    """Serve the providers file while the check loop runs."""
    server = uvicorn.Server(uvicorn.Config(
        create_app(config.output_providers_path),
        host="0.0.0.0",
        port=config.port,
        log_level="warning",
    ))
    await asyncio.gather(server.serve(), check_loop(config, server=server))


@click.command()
@click.option(
    "--checker-config",
    "-c",
    default=None,
    type=click.Path(dir_okay=False),
    help="Checker config file (default: config/checker_config.json)",
)
@click.option(
    "--default-providers",
    default=None,
    type=click.Path(dir_okay=False),
    help="Candidate providers file (overrides checker config)",
)
@click.option(
    "--reference-providers",
    default=None,
    type=click.Path(dir_okay=False),
    help="Reference providers file (overrides checker config)",
)
@click.option(
    "--test-methods",
    default=None,
    type=click.Path(dir_okay=False),
    help="Test methods file (overrides checker config)",
)
@click.option(
    "--output",
    "-o",
    default=None,
    type=click.Path(dir_okay=False),
    help="Valid providers output file (overrides checker config)",
)
@click.option(
    "--once",
    is_flag=True,
    help="Run a single pass and exit",
)
@click.option(
    "--no-server",
    is_flag=True,
    help="Do not serve the providers file over HTTP",
)
@click.option(
    "--port",
    "-p",
    default=None,
    type=int,
    envvar="PORT",
    help="HTTP port (default: from checker config)",
)
@click.option(
    "--log-level",
    "-l",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON log format",
)
def main(
    checker_config: Optional[str],
    default_providers: Optional[str],
    reference_providers: Optional[str],
    test_methods: Optional[str],
    output: Optional[str],
    once: bool,
    no_server: bool,
    port: Optional[int],
    log_level: str,
    json_logs: bool,
) -> None:
    """
    Provider Health Checker.

    Validates RPC providers against a reference provider per chain and
    publishes the ones that agree.
    """
    load_dotenv()
    setup_logging(level=log_level, json_output=json_logs)
    set_global_context(service="provider-health-checker", version="0.1.0")

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    try:
        config = load_checker_config(checker_config)
    except HealthCheckerError as e:
        log_error(logger, e.code.value, e.message, **e.details)
        sys.exit(1)

    overrides = {
        "default_providers_path": default_providers,
        "reference_providers_path": reference_providers,
        "tests_config_path": test_methods,
        "output_providers_path": output,
        "port": port,
    }
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})

    serve = not (once or no_server)
    logger.info(
        "Starting provider health checker",
        extra={"context": {
            "interval_seconds": config.interval_seconds,
            "request_timeout_seconds": config.request_timeout_seconds,
            "output": config.output_providers_path,
            "port": config.port if serve else None,
            "once": once,
        }},
    )

    try:
        if serve:
            asyncio.run(serve_and_check(config))
        else:
            passes = asyncio.run(check_loop(config, once=once))
            if once and passes == 0:
                sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Checker interrupted")
    except Exception as e:
        logger.error(
            f"Checker error: {e}",
            extra={"context": {"error": str(e)}},
            exc_info=True,
        )
        sys.exit(1)

    logger.info("Checker stopped")


if __name__ == "__main__":
    main()
