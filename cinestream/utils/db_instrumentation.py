"""Runtime patching helpers to instrument Data API collection methods.

Call `instrument_astra_collection()` during application startup (done in
`cinestream.utils.observability`) and every `find_one` / `insert_one` /
`update_one` / `delete_one` will be surrounded by an OpenTelemetry span and a
Prometheus histogram sample.
"""
from __future__ import annotations

import functools
import time
from typing import Any, Awaitable

from opentelemetry import trace

from cinestream.db.astra_client import AstraDBCollection
from cinestream.metrics import ASTRA_DB_QUERY_DURATION_SECONDS

_tracer = trace.get_tracer(__name__)

# method name -> operation label
_INSTRUMENTED_METHODS = {
    "find_one": "find_one",
    "insert_one": "insert",
    "update_one": "update",
    "delete_one": "delete",
}


async def _observe(op: str, coro: Awaitable[Any]):  # noqa: D401
    """Await *coro* while recording span + histogram for DB *op*."""

    start = time.perf_counter()
    with _tracer.start_as_current_span(f"astra.{op}") as span:
        try:
            return await coro
        finally:
            duration = time.perf_counter() - start
            ASTRA_DB_QUERY_DURATION_SECONDS.labels(operation=op).observe(duration)
            span.set_attribute("duration_ms", int(duration * 1000))


def _wrap(method_name: str, op: str) -> None:
    original = getattr(AstraDBCollection, method_name)

    @functools.wraps(original)
    async def _wrapped(self, *args, **kwargs):  # type: ignore
        return await _observe(op, original(self, *args, **kwargs))

    setattr(AstraDBCollection, method_name, _wrapped)


def instrument_astra_collection() -> None:  # noqa: D401
    """Monkey-patch AstraDBCollection once per process."""

    if getattr(AstraDBCollection, "_cinestream_instrumented", False):
        return  # Already patched

    for method_name, op in _INSTRUMENTED_METHODS.items():
        _wrap(method_name, op)

    AstraDBCollection._cinestream_instrumented = True  # type: ignore[attr-defined]
