# nvidia_exporter/api.py
from __future__ import annotations

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST

from nvidia_exporter.collector.registry import MetricsRegistry

METRICS_PATH = "/metrics"


def create_app(registry: MetricsRegistry) -> FastAPI:
    # no docs/openapi routes: /metrics is the only path served
    app = FastAPI(title="nvidia exporter", docs_url=None, redoc_url=None, openapi_url=None)

    @app.get(METRICS_PATH)
    def metrics() -> Response:
        return Response(content=registry.exposition(), media_type=CONTENT_TYPE_LATEST)

    return app
