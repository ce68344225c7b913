"""CLI entry point for the Shrine gateway.

Runs the gateway continuously with a Prometheus metrics server, or a single
statistics cycle with ``--once``.

Examples:
    ```bash
    python -m shrine
    python -m shrine --config config/gateway.yaml --log-level DEBUG
    SHRINE_PRIVKEY_HEX=... shrine --once
    ```
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from shrine.core import ShrineError, start_metrics_server
from shrine.core.logger import Logger, StructuredFormatter
from shrine.core.yaml import load_yaml
from shrine.services.gateway import Gateway


DEFAULT_CONFIG = Path("config") / "gateway.yaml"

logger = Logger("cli")


async def run_service(service: Gateway, *, once: bool) -> int:
    """Run *service* once or until a shutdown signal arrives.

    Returns:
        Exit code: 0 for success, 1 for failure.
    """
    if once:
        try:
            async with service:
                await service.run()
            logger.info("gateway_completed")
            return 0
        except Exception as e:  # CLI error boundary for one-shot mode
            logger.error("gateway_failed", error=str(e))
            return 1

    metrics_config = service.config.metrics
    metrics_server = await start_metrics_server(metrics_config)
    if metrics_config.enabled:
        logger.info(
            "metrics_server_started",
            host=metrics_config.host,
            port=metrics_config.port,
            path=metrics_config.path,
        )

    def handle_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        service.request_shutdown()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        async with service:
            await service.run_forever()
        return 0
    except Exception as e:  # CLI error boundary for continuous mode
        logger.error("gateway_failed", error=str(e))
        return 1
    finally:
        await metrics_server.stop()
        if metrics_config.enabled:
            logger.info("metrics_server_stopped")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the gateway runner."""
    parser = argparse.ArgumentParser(
        prog="shrine",
        description="Shrine Nostr gateway",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Gateway config path (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one statistics cycle and exit (default: run continuously)",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Install ``StructuredFormatter`` on the root handler."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def load_config(path: Path) -> dict[str, Any]:
    """Load the gateway YAML, or ``{}`` when the file does not exist."""
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return {}
    return load_yaml(path)


async def main(argv: list[str] | None = None) -> int:
    """Parse args, build the gateway and run it."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        service = Gateway.from_dict(load_config(args.config))
    except ShrineError as e:
        logger.error("config_invalid", error=e.message)
        return 1

    try:
        return await run_service(service, once=args.once)
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
