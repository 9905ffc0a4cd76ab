# collector/registry.py
"""
Gauge store shared by the sampler (writer) and the HTTP app (reader).

Wraps its own `prometheus_client.CollectorRegistry` instead of the global
`REGISTRY`, so tests and embedders can run several exporters side by side.
Each gauge write is locked inside prometheus_client; a scrape can still see
half of a line's values updated.
"""
from __future__ import annotations

import threading
from typing import Dict, List, Optional

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from ..errors import RegistrationError
from .stats import DEVICE_LABEL, MetricDefinition


class MetricsRegistry:
    def __init__(self) -> None:
        self._registry = CollectorRegistry(auto_describe=True)
        self._gauges: Dict[str, Gauge] = {}
        self._last_updated: Optional[Gauge] = None
        self._lock = threading.Lock()

    @property
    def names(self) -> List[str]:
        return list(self._gauges)

    def _add(self, name: str, help_text: str, labels: tuple) -> Gauge:
        with self._lock:
            if name in self._gauges:
                raise RegistrationError(f"metric {name} registered twice")
            try:
                gauge = Gauge(name, help_text, labelnames=labels, registry=self._registry)
            except ValueError as exc:  # prometheus_client's duplicate/invalid name check
                raise RegistrationError(f"cannot register {name}: {exc}") from exc
            self._gauges[name] = gauge
            return gauge

    def register(self, definition: MetricDefinition) -> None:
        self._add(definition.exposed_name, definition.help_text, definition.labels)

    def register_last_updated(self, name: str, help_text: str) -> None:
        self._last_updated = self._add(name, help_text, ())

    def set(self, name: str, device_id: str, value: float) -> None:
        self._gauges[name].labels(**{DEVICE_LABEL: device_id}).set(value)

    def touch(self, timestamp: float) -> None:
        """Record when the last good line was read."""
        if self._last_updated is not None:
            self._last_updated.set(timestamp)

    def value(self, name: str, device_id: str | None = None) -> Optional[float]:
        labels = {DEVICE_LABEL: device_id} if device_id is not None else None
        return self._registry.get_sample_value(name, labels)

    def exposition(self) -> bytes:
        return generate_latest(self._registry)
