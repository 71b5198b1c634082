import pytest
from fastapi import FastAPI

from cinestream.core import config as cfg
from cinestream.utils import observability as obs


@pytest.mark.parametrize("proto", ["grpc", "http"])
def test_otlp_protocol_switch(monkeypatch, proto):
    """Tracing setup succeeds for both OTLP protocols."""

    monkeypatch.setattr(
        cfg.settings, "OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4318"
    )
    monkeypatch.setattr(cfg.settings, "OTEL_EXPORTER_OTLP_PROTOCOL", proto)
    monkeypatch.setattr(cfg.settings, "OTEL_TRACES_ENABLED", True)
    monkeypatch.setattr(cfg.settings, "OTEL_METRICS_ENABLED", False)
    monkeypatch.setattr(obs, "_otel_instrumented", False)

    obs._setup_opentelemetry(FastAPI())

    assert obs._otel_instrumented


def test_unsupported_protocol_is_skipped(monkeypatch):
    monkeypatch.setattr(
        cfg.settings, "OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4318"
    )
    monkeypatch.setattr(cfg.settings, "OTEL_EXPORTER_OTLP_PROTOCOL", "carrier-pigeon")
    monkeypatch.setattr(cfg.settings, "OTEL_TRACES_ENABLED", True)
    monkeypatch.setattr(obs, "_otel_instrumented", False)

    obs._setup_opentelemetry(FastAPI())

    assert not obs._otel_instrumented


def test_disabled_observability_is_a_no_op(monkeypatch):
    monkeypatch.setattr(cfg.settings, "OBSERVABILITY_ENABLED", False)
    monkeypatch.setattr(obs, "_prometheus_instrumented", False)

    app = FastAPI()
    obs.configure_observability(app)

    assert not obs._prometheus_instrumented
    assert "/metrics" not in {route.path for route in app.routes}
