"""
Метрики Prometheus для сервиса.

Назначение:
- Экспорт /metrics
- Счётчики HTTP запросов, загрузок и событий авторизации
- Задержки по стадиям пайплайна загрузки
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import FastAPI, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# =============================================================================
# СЧЁТЧИКИ И МЕТРИКИ
# =============================================================================

# Общее количество HTTP-запросов
REQUESTS_TOTAL = Counter(
    "transcriber_requests_total",
    "Общее количество HTTP запросов",
    ["service", "route", "method", "status"],
)

HTTP_REQUEST_LATENCY_MS = Histogram(
    "transcriber_http_request_latency_ms",
    "Задержка HTTP запроса (мс)",
    ["service", "route", "method"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)

# Задержки по стадиям пайплайна загрузки
UPLOAD_STAGE_LATENCY_MS = Histogram(
    "transcriber_upload_stage_latency_ms",
    "Задержка выполнения стадий загрузки (мс)",
    ["stage"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000),
)

UPLOADS_TOTAL = Counter(
    "transcriber_uploads_total",
    "Количество обработанных загрузок",
    ["result"],  # ok|no_file|provider_error|storage_error|failed
)

AUTH_EVENTS_TOTAL = Counter(
    "transcriber_auth_events_total",
    "События авторизации",
    ["event", "result"],  # event=register|login|gate, result=ok|denied
)


@contextmanager
def track_stage_latency(stage: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        UPLOAD_STAGE_LATENCY_MS.labels(stage=stage).observe(elapsed_ms)


def record_upload_result(result: str) -> None:
    UPLOADS_TOTAL.labels(result=result).inc()


def record_auth_event(*, event: str, ok: bool) -> None:
    AUTH_EVENTS_TOTAL.labels(event=event, result="ok" if ok else "denied").inc()


# =============================================================================
# ENDPOINT /metrics
# =============================================================================
def setup_metrics_endpoint(app: FastAPI, *, service: str = "transcriber-api") -> None:
    """
    Регистрирует endpoint /metrics для Prometheus.
    """

    @app.middleware("http")
    async def http_metrics(request: Request, call_next):
        route = request.url.path
        method = request.method
        started = time.perf_counter()

        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        status_code = str(response.status_code)

        REQUESTS_TOTAL.labels(
            service=service,
            route=route,
            method=method,
            status=status_code,
        ).inc()
        HTTP_REQUEST_LATENCY_MS.labels(
            service=service,
            route=route,
            method=method,
        ).observe(elapsed_ms)
        return response

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
