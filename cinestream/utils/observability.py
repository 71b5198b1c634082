# Observability utilities – OpenTelemetry instrumentation, Prometheus metrics
# exposition and structured log shipping.
#
# This module is imported by main.py during application start-up.  Setup is
# best-effort: if an endpoint is unreachable or an exporter cannot be built we
# log a warning but allow the application to continue running.

from __future__ import annotations

import logging
import pathlib
import time
from logging.handlers import RotatingFileHandler
from typing import Any

import logging_loki
from fastapi import FastAPI
from opentelemetry import metrics, trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from prometheus_fastapi_instrumentator import Instrumentator
from pythonjsonlogger import jsonlogger

from cinestream.core.config import settings
from cinestream.utils.db_instrumentation import instrument_astra_collection

_logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# JSON log formatter (trace correlation friendly)
# ---------------------------------------------------------------------------


def _get_json_formatter() -> logging.Formatter:  # noqa: D401
    """Return a JSON formatter with OTEL trace/span correlation keys."""

    fmt_keys = [
        "asctime",
        "levelname",
        "name",
        "message",
        "trace_id",
        "span_id",
    ]
    return jsonlogger.JsonFormatter(" ".join([f"%({k})s" for k in fmt_keys]))


def _parse_pairs(raw: str | None) -> dict[str, str]:  # noqa: D401
    """Parse ``k=v,k2=v2`` into a dict (used for OTLP headers and Loki labels)."""

    pairs: dict[str, str] = {}
    if not raw:
        return pairs
    for pair in raw.split(","):
        if "=" in pair:
            k, v = pair.split("=", 1)
            pairs[k.strip()] = v.strip()
    return pairs


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def configure_observability(app: FastAPI) -> None:  # noqa: D401
    """Initialise observability integrations.

    The function is safe to call multiple times – it keeps track of internal
    state to ensure instrumentation happens only once.
    """

    if not settings.OBSERVABILITY_ENABLED:
        _logger.info("Observability explicitly disabled via settings")
        return

    _setup_prometheus(app)
    _setup_opentelemetry(app)
    _setup_log_shipping()

    # Instrument the Data API collections once the histogram is registered.
    instrument_astra_collection()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


_prometheus_instrumented = False


def _setup_prometheus(app: FastAPI) -> None:
    global _prometheus_instrumented
    if _prometheus_instrumented:
        return

    try:
        start_time = time.perf_counter()
        Instrumentator().instrument(app).expose(
            app, include_in_schema=False, should_gzip=True
        )
        _prometheus_instrumented = True
        _logger.info(
            "Prometheus instrumentation initialised in %.2f ms",
            (time.perf_counter() - start_time) * 1000,
        )
    except Exception as exc:  # pragma: no cover
        _logger.warning("Failed to initialise Prometheus instrumentation: %s", exc)


_otel_instrumented = False


def _setup_opentelemetry(app: FastAPI) -> None:
    global _otel_instrumented
    if _otel_instrumented or not settings.OTEL_TRACES_ENABLED:
        return

    if not settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        _logger.info(
            "OTEL_TRACES_ENABLED but no OTEL_EXPORTER_OTLP_ENDPOINT set – skipping"
        )
        return

    proto = (settings.OTEL_EXPORTER_OTLP_PROTOCOL or "grpc").lower()
    if proto not in {"grpc", "http"}:
        _logger.warning(
            "Unsupported OTLP protocol '%s' – skipping tracing setup", proto
        )
        return

    try:
        start = time.perf_counter()

        resource_attrs: dict[str, Any] = {
            "service.name": settings.PROJECT_NAME,
            "service.version": settings.APP_VERSION,
            "deployment.environment": settings.ENVIRONMENT,
        }
        resource = Resource.create(resource_attrs)

        sampler = TraceIdRatioBased(settings.OTEL_TRACES_SAMPLER_RATIO)
        provider = TracerProvider(resource=resource, sampler=sampler)
        trace.set_tracer_provider(provider)

        # Exporter implementation follows the configured protocol.
        if proto == "http":
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
                OTLPSpanExporter,
            )
        else:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )

        headers = _parse_pairs(settings.OTEL_EXPORTER_OTLP_HEADERS) or None
        if proto == "http":
            span_exporter = OTLPSpanExporter(
                endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT, headers=headers
            )
        else:
            span_exporter = OTLPSpanExporter(
                endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
                insecure=True,
                headers=headers,
            )
        provider.add_span_processor(BatchSpanProcessor(span_exporter))

        # Instrument FastAPI request handling
        FastAPIInstrumentor().instrument_app(app, tracer_provider=provider)

        # Correlate application logs with active spans
        LoggingInstrumentor().instrument(set_logging_format=True)

        if settings.OTEL_METRICS_ENABLED:
            if proto == "http":
                from opentelemetry.exporter.otlp.proto.http.metric_exporter import (
                    OTLPMetricExporter,
                )

                metric_exporter = OTLPMetricExporter(
                    endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT, headers=headers
                )
            else:
                from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
                    OTLPMetricExporter,
                )

                metric_exporter = OTLPMetricExporter(
                    endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
                    insecure=True,
                    headers=headers,
                )
            reader = PeriodicExportingMetricReader(metric_exporter)
            metrics.set_meter_provider(
                MeterProvider(resource=resource, metric_readers=[reader])
            )

        _otel_instrumented = True
        _logger.info(
            "OpenTelemetry tracing initialised (%.2f ms)",
            (time.perf_counter() - start) * 1000,
        )
    except Exception as exc:  # pragma: no cover
        _logger.warning("Failed to initialise OpenTelemetry tracing: %s", exc)


# ---------------------------------------------------------------------------
# Loki or file handler setup
# ---------------------------------------------------------------------------

_loki_handler_added = False
_file_handler_added = False


def _setup_log_shipping() -> None:
    global _loki_handler_added, _file_handler_added
    if _loki_handler_added or _file_handler_added:
        return

    try:
        if settings.LOKI_ENABLED and settings.LOKI_ENDPOINT:
            tags = {
                "service": settings.PROJECT_NAME,
                "environment": settings.ENVIRONMENT,
            }
            tags.update(_parse_pairs(settings.LOKI_EXTRA_LABELS))

            handler = logging_loki.LokiHandler(
                url=settings.LOKI_ENDPOINT,
                tags=tags,
                version="1",
            )
            handler.setFormatter(_get_json_formatter())
            logging.getLogger().addHandler(handler)
            _loki_handler_added = True
            _logger.info(
                "Loki logging handler attached (endpoint=%s)", settings.LOKI_ENDPOINT
            )
            return

        # Loki disabled – fall back to rotating file handler
        log_dir = pathlib.Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_path = log_dir / "app.log"

        handler = RotatingFileHandler(
            file_path, maxBytes=5 * 1024 * 1024, backupCount=5
        )
        handler.setFormatter(_get_json_formatter())
        logging.getLogger().addHandler(handler)
        _file_handler_added = True
        _logger.info("File logging handler attached (%s)", file_path)
    except OSError as exc:  # pragma: no cover
        _logger.warning("Failed to attach logging handler: %s", exc)
