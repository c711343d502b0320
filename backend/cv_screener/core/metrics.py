"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

INDEX_SIZE = Gauge(
    "cvs_index_chunks",
    "Number of embedded chunks in the persisted index",
    registry=REGISTRY,
)

EMBEDDING_CALLS = Counter(
    "cvs_embedding_calls_total",
    "Embedding provider calls made during ingestion",
    labelnames=("outcome",),
    registry=REGISTRY,
)

REBUILD_DURATION = Histogram(
    "cvs_rebuild_duration_seconds",
    "Duration of full index rebuilds",
    registry=REGISTRY,
)

QUERY_COUNT = Counter(
    "cvs_queries_total",
    "Chat queries answered",
    labelnames=("outcome",),
    registry=REGISTRY,
)

QUERY_LATENCY = Histogram(
    "cvs_query_latency_seconds",
    "End-to-end latency of answer()",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "INDEX_SIZE",
    "EMBEDDING_CALLS",
    "REBUILD_DURATION",
    "QUERY_COUNT",
    "QUERY_LATENCY",
    "metrics_response",
]
