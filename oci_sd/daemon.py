"""Periodic refresh loop with cancellable delivery and signal handling."""

from __future__ import annotations

import logging
import queue
import signal
import threading
import time
from types import FrameType

from .config import AppConfig
from .discovery import OCIProvider
from .discovery.models import TargetGroup
from .discovery.refresher import Refresher
from .metrics import MetricsSink, default_metrics

logger = logging.getLogger(__name__)

# How often a blocked delivery re-checks the stop event
DELIVERY_POLL_SECONDS = 0.1


class Daemon:
    """Refresh immediately, then every interval; hand each good snapshot to a consumer queue."""

    def __init__(
        self,
        config: AppConfig,
        provider: OCIProvider | None = None,
        metrics: MetricsSink | None = None,
        interval: float | None = None,
    ):
        self._config = config
        self._provider = provider if provider is not None else self._build_provider(config)
        self._metrics = metrics if metrics is not None else default_metrics()
        self._interval = interval if interval is not None else float(config.discovery.refresh_interval_seconds)
        self._refresher = Refresher(
            self._provider,
            self._metrics,
            compartment_id=config.oci.compartment_id,
            root_compartment_id=config.oci.root_compartment_id,
            display_name=config.oci.display_name,
            port=config.discovery.port,
            max_pages=config.discovery.max_pages,
        )
        self.stop_event = threading.Event()

    @staticmethod
    def _build_provider(config: AppConfig) -> OCIProvider:
        from .discovery.oci_client import OCIClient  # lazy import keeps the SDK off the --validate path

        return OCIClient(config.oci)

    def run_once(self) -> list[TargetGroup]:
        """Execute a single refresh and return its snapshot."""
        return self._refresher.refresh()

    def run(self, out: queue.Queue, stop: threading.Event | None = None) -> None:
        """Run until ``stop`` (default: this daemon's stop_event) is set."""
        stop = stop if stop is not None else self.stop_event
        logger.info("Daemon started, refreshing every %.1fs", self._interval)

        self._tick(out, stop)

        next_tick = time.monotonic() + self._interval
        while not stop.wait(max(0.0, next_tick - time.monotonic())):
            self._tick(out, stop)
            # Ticks missed while a cycle overran the interval are dropped
            now = time.monotonic()
            next_tick += self._interval
            while next_tick <= now:
                next_tick += self._interval

        logger.info("Daemon stopped")

    def _tick(self, out: queue.Queue, stop: threading.Event) -> None:
        """One refresh plus delivery; a failed refresh delivers nothing."""
        if stop.is_set():
            return
        start = time.monotonic()
        try:
            groups = self._refresher.refresh()
        except Exception:
            logger.exception("Refresh failed")
            return

        logger.info(
            "Refresh complete",
            extra={
                "total_targets": len(groups),
                "elapsed_seconds": round(time.monotonic() - start, 2),
            },
        )
        if not self._deliver(out, groups, stop):
            logger.debug("Stopped before the snapshot was delivered")

    @staticmethod
    def _deliver(out: queue.Queue, groups: list[TargetGroup], stop: threading.Event) -> bool:
        """Block until the consumer takes the snapshot or ``stop`` fires; True if delivered."""
        while not stop.is_set():
            try:
                out.put(groups, timeout=DELIVERY_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGTERM, self._handle_shutdown)
        signal.signal(signal.SIGINT, self._handle_shutdown)

    def _handle_shutdown(self, signum: int, frame: FrameType | None) -> None:
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, shutting down", sig_name)
        self.stop_event.set()
