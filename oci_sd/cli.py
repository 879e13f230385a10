"""Argument parsing, configuration loading, and daemon bootstrap."""

from __future__ import annotations

import argparse
import logging
import queue
import sys
import threading

from .config import load_config
from .daemon import Daemon
from .exceptions import ConfigError, DiscoveryError
from .logging_config import configure_logging
from .metrics import serve_metrics
from .output.file_sd import FileSDWriter

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oci-sd",
        description="OCI compute service discovery for Prometheus file_sd",
    )
    parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to the YAML configuration file",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single discovery cycle, write the output file and exit",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the configuration file and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Load config (minimal logging until config is loaded)
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    configure_logging(config.logging)

    if args.validate:
        logger.info("Configuration is valid")
        return 0

    writer = FileSDWriter(config.output.file)

    try:
        daemon = Daemon(config)
        if args.once:
            logger.info("Running single discovery cycle (--once)")
            try:
                writer.write(daemon.run_once())
            except OSError as exc:
                logger.error("Failed to write %s: %s", config.output.file, exc)
                return 1
            return 0

        if config.metrics.listen_port:
            serve_metrics(config.metrics.listen_port, config.metrics.listen_addr)

        handoff: queue.Queue = queue.Queue(maxsize=1)
        consumer = threading.Thread(
            target=writer.run,
            args=(handoff, daemon.stop_event),
            name="file-sd-writer",
            daemon=True,
        )
        consumer.start()
        daemon.install_signal_handlers()
        daemon.run(handoff)
        consumer.join(timeout=5)
    except DiscoveryError as exc:
        logger.error("Fatal error: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0

    return 0
