"""Prometheus file_sd writer: the consumer end of the daemon's delivery queue."""

from __future__ import annotations

import json
import logging
import os
import queue
import tempfile
import threading
from pathlib import Path

from ..discovery.models import TargetGroup

logger = logging.getLogger(__name__)


def render(groups: list[TargetGroup]) -> str:
    """Serialize a snapshot as a file_sd JSON document, in snapshot order."""
    return json.dumps([g.to_file_sd() for g in groups], indent=4, sort_keys=True) + "\n"


class FileSDWriter:
    """Writes each delivered snapshot to ``path``, replacing the previous one.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so Prometheus never reads a half-written file.
    Identical snapshots are not rewritten.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._last_content: str | None = None

    @property
    def path(self) -> Path:
        return self._path

    def write(self, groups: list[TargetGroup]) -> bool:
        """Write a snapshot; returns False when the file already had this content."""
        content = render(groups)
        if content == self._last_content:
            logger.debug("Targets unchanged, not rewriting", extra={"path": str(self._path)})
            return False

        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=directory)
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self._path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        self._last_content = content
        logger.info(
            "Wrote %d target groups", len(groups),
            extra={"path": str(self._path), "total_targets": len(groups)},
        )
        return True

    def run(self, source: queue.Queue, stop: threading.Event, poll_seconds: float = 0.5) -> None:
        """Drain ``source`` until ``stop`` is set, writing every snapshot received."""
        while not stop.is_set():
            try:
                groups = source.get(timeout=poll_seconds)
            except queue.Empty:
                continue
            try:
                self.write(groups)
            except OSError:
                logger.exception("Failed to write targets", extra={"path": str(self._path)})
