#!/usr/bin/env python
"""
nvidia-exporter [--interval 5s] [--port 9523]

Starts the nvidia-smi sampler and serves its gauges on :<port>/metrics.
Any sampler or listener failure ends the process with status 1; restarts are
left to whatever supervises the process (systemd, k8s, ...).
"""
from __future__ import annotations

import logging
import queue
import sys
import threading
from typing import List

import uvicorn

from nvidia_exporter.api import METRICS_PATH, create_app
from nvidia_exporter.collector.poller import Sampler
from nvidia_exporter.collector.registry import MetricsRegistry
from nvidia_exporter.collector.stats import LAST_UPDATED_HELP, LAST_UPDATED_NAME, STATS
from nvidia_exporter.config import configure_logging, parse_args
from nvidia_exporter.errors import ExporterError, ListenerError

log = logging.getLogger("nvidia_exporter")

LISTEN_HOST = "0.0.0.0"


def build_registry() -> MetricsRegistry:
    registry = MetricsRegistry()
    registry.register_last_updated(LAST_UPDATED_NAME, LAST_UPDATED_HELP)
    for stat in STATS:
        registry.register(stat)
    return registry


def _serve(server: uvicorn.Server, failures: queue.Queue) -> None:
    try:
        server.run()
    except SystemExit:  # uvicorn exits this way when it cannot bind
        pass
    failures.put(ListenerError(f"HTTP listener on :{server.config.port} stopped"))


def start_listener(registry: MetricsRegistry, port: int, failures: queue.Queue) -> uvicorn.Server:
    config = uvicorn.Config(
        create_app(registry),
        host=LISTEN_HOST,
        port=port,
        log_level=logging.getLevelName(log.getEffectiveLevel()).lower(),
        access_log=False,
    )
    server = uvicorn.Server(config)
    log.info("Starting HTTP listener on :%d (%s)", port, METRICS_PATH)
    threading.Thread(target=_serve, args=(server, failures), name="http", daemon=True).start()
    return server


def main(argv: List[str] | None = None) -> int:
    configure_logging()
    try:
        settings = parse_args(argv)
        registry = build_registry()
        failures: queue.Queue = queue.Queue()
        sampler = Sampler(registry, STATS, interval=settings.interval, failures=failures)
    except ExporterError as exc:
        log.error("%s", exc)
        return 1

    sampler.start()
    server = start_listener(registry, settings.port, failures)

    try:
        failure = failures.get()
    except KeyboardInterrupt:
        log.info("Interrupted, exiting")
        server.should_exit = True
        return 0

    log.critical("Exiting: %s", failure)
    server.should_exit = True
    return 1


if __name__ == "__main__":
    sys.exit(main())
