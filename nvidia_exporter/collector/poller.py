# collector/poller.py
from __future__ import annotations

import logging
import queue
import subprocess
import threading
import time
from typing import Callable, Optional, Sequence, TextIO

from ..errors import ExporterError, ToolIOError
from .parsers import build_command, parse_line
from .registry import MetricsRegistry
from .stats import STATS, MetricDefinition, Sample

log = logging.getLogger(__name__)

NVIDIA_SMI = "nvidia-smi"
POLL_INTERVAL = 5.0  # seconds


class Sampler:
    """Runs `nvidia-smi -l <interval>` and copies every line into the registry.

    Any problem (tool missing, stream closed, malformed line) ends the sampler
    and is put on `failures`; nothing is retried.
    """

    def __init__(
        self,
        registry: MetricsRegistry,
        stats: Sequence[MetricDefinition] = STATS,
        interval: float = POLL_INTERVAL,
        tool: str = NVIDIA_SMI,
        failures: Optional[queue.Queue] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = registry
        self.stats = tuple(stats)
        # raises ConfigurationError before anything is spawned
        self.command = build_command(tool, interval, self.stats)
        self.failures: queue.Queue = failures if failures is not None else queue.Queue()
        self.clock = clock
        self.proc: Optional[subprocess.Popen] = None

    def start(self) -> threading.Thread:
        thread = threading.Thread(target=self.run, name="sampler", daemon=True)
        thread.start()
        return thread

    def run(self) -> None:
        try:
            try:
                self.proc = subprocess.Popen(
                    self.command, stdout=subprocess.PIPE, text=True, bufsize=1
                )
            except OSError as exc:
                raise ToolIOError(f"cannot start nvidia-smi: {exc}", self.command) from exc
            log.info("Running %s", " ".join(self.command))
            self.consume(self.proc.stdout)
        except ExporterError as exc:
            log.error("Sampler stopped: %s", exc)
            self._kill()
            self.failures.put(exc)
        except Exception as exc:
            log.exception("Sampler crashed")
            self._kill()
            self.failures.put(ExporterError(f"sampler crashed: {exc}"))

    def consume(self, stream: TextIO) -> None:
        """Apply lines from `stream` until it fails; always ends with an exception."""
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as exc:
                raise ToolIOError(f"error reading nvidia-smi output: {exc}", self.command) from exc
            if not line.endswith("\n"):
                # EOF, possibly after a partial line: the tool exited
                raise ToolIOError(
                    f"error reading nvidia-smi output: stream closed (partial line {line!r})"
                    if line
                    else "error reading nvidia-smi output: stream closed",
                    self.command,
                )
            self.apply(line)

    def apply(self, line: str) -> Sample:
        sample = parse_line(line, self.stats)
        self.registry.touch(self.clock())
        for stat, value in zip(self.stats, sample.values):
            self.registry.set(stat.exposed_name, sample.device_id, value)
        log.debug("gpu %s: %s", sample.device_id, sample.values)
        return sample

    def _kill(self) -> None:
        if self.proc is not None and self.proc.poll() is None:
            self.proc.kill()
            self.proc.wait()
