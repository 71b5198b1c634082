from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Custom Prometheus metrics – exported via /metrics route exposed by
# prometheus_fastapi_instrumentator in cinestream.utils.observability.configure_observability().
# ---------------------------------------------------------------------------

ASTRA_DB_QUERY_DURATION_SECONDS = Histogram(
    "astra_db_query_duration_seconds",
    "Latency of Astra DB Data API queries (seconds)",
    ["operation"],
)

OBJECT_STORE_DURATION_SECONDS = Histogram(
    "object_store_duration_seconds",
    "Latency of object store operations (seconds)",
    ["operation"],
)

SIGNED_URL_FAILURES_TOTAL = Counter(
    "signed_url_failures_total",
    "Media keys that could not be exchanged for a signed URL",
    ["asset"],
)
