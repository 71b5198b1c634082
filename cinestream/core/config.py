import pathlib
import os
import logging
from pydantic_settings import BaseSettings, SettingsConfigDict
from cinestream.version import __version__ as app_version
from pydantic import Field
from pydantic import model_validator

# --------------------------------------------------------------
# Root logging configuration
# --------------------------------------------------------------
# Honour a LOG_LEVEL environment variable (default INFO) so that running e.g.
#   $ export LOG_LEVEL=DEBUG
# surfaces debug-level log lines from all project modules without requiring a
# custom uvicorn logging config.  This runs before the rest of the app is
# imported so it governs all subsequent logger instances.

_root_log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

# Only configure the root logger if it hasn't been configured yet (to avoid
# clobbering test-specific logging setups).
if not logging.getLogger().hasHandlers():  # pragma: no cover
    logging.basicConfig(
        level=_root_log_level, format="%(levelname)s:%(name)s:%(message)s"
    )
else:
    logging.getLogger().setLevel(_root_log_level)

# Absolute path to the project-root .env file, independent of the current
# working directory (needed for `uvicorn --reload`).
_project_root = pathlib.Path(__file__).parent.parent.parent
_ENV_FILE = _project_root / ".env"
if not _ENV_FILE.is_file():
    logging.debug("No .env file found at %s, falling back to ./.env", _ENV_FILE)
    _ENV_FILE = pathlib.Path(".env")


_BOOL_SETTINGS = (
    "RATE_LIMIT_ENABLED",
    "AUTH_COOKIE_SECURE",
    "EXPOSE_ERROR_DETAILS",
    "OBSERVABILITY_ENABLED",
    "OTEL_TRACES_ENABLED",
    "OTEL_METRICS_ENABLED",
    "LOKI_ENABLED",
)


class Settings(BaseSettings):
    # Pydantic-settings model. Populates settings from .env file and environment
    # variables.  See: https://docs.pydantic.dev/latest/concepts/pydantic_settings/

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "CineStream Movie Catalog API"
    API_PREFIX: str = "/api"

    # AstraDB Settings
    ASTRA_DB_API_ENDPOINT: str = "http://localhost:8080/api"  # Dummy default for tests
    ASTRA_DB_APPLICATION_TOKEN: str = "test-token"  # Dummy default for tests
    ASTRA_DB_KEYSPACE: str = "test_keyspace"  # Dummy default for tests

    MOVIES_COLLECTION: str = "movies"
    REVIEWS_COLLECTION: str = "reviews"
    COMMENTS_COLLECTION: str = "comments"

    # JWT Settings
    SECRET_KEY: str = "unit-test-secret"  # Dummy default for tests
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120

    # ------------------------------------------------------------------
    # Single administrative identity (there is no user table)
    # ------------------------------------------------------------------

    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD_HASH: str | None = Field(
        default=None,
        description="bcrypt hash of the admin password. Login is refused while unset.",
    )

    AUTH_COOKIE_NAME: str = "adminToken"
    AUTH_COOKIE_SECURE: bool = True
    AUTH_COOKIE_SAMESITE: str = "none"

    # ------------------------------------------------------------------
    # Object storage (S3 or an S3-compatible endpoint such as MinIO)
    # ------------------------------------------------------------------

    AWS_REGION: str | None = "us-east-1"
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: str | None = None
    AWS_SESSION_TOKEN: str | None = None
    AWS_BUCKET_NAME: str = "cinestream-media"
    AWS_S3_ENDPOINT_URL: str | None = None

    SIGNED_URL_EXPIRE_SECONDS: int = Field(
        default=3600,
        ge=60,
        description="Validity window of presigned media URLs handed to clients.",
    )
    MAX_UPLOAD_SIZE_BYTES: int = 500 * 1024 * 1024
    UPLOAD_CACHE_CONTROL: str = "max-age=31536000"

    # ------------------------------------------------------------------
    # Request throttling (slowapi)
    # ------------------------------------------------------------------

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/minute"
    RATE_LIMIT_LOGIN: str = "5/minute"
    RATELIMIT_STORAGE_URI: str = "memory://"

    # Listing defaults
    DEFAULT_LIST_LIMIT: int = 50
    MAX_LIST_LIMIT: int = 100

    # CORS – provide comma-separated string in env ("*" for all)
    CORS_ALLOW_ORIGINS: str = "*"

    @property
    def parsed_cors_origins(self) -> list[str]:  # noqa: D401
        raw = self.CORS_ALLOW_ORIGINS
        if raw.strip() == "*":
            return ["*"]
        origins = []
        for o in raw.split(","):
            o_strip = o.strip()
            if not o_strip:
                continue
            # "http://localhost:5173/" and "http://localhost:5173" must match.
            origins.append(o_strip.rstrip("/"))
        return origins

    # Application build version (surfaced in OpenAPI docs)
    APP_VERSION: str = app_version

    ENVIRONMENT: str = Field(default="dev")

    # Include exception type/message in 500 responses.  Unset means "only
    # outside production".
    EXPOSE_ERROR_DETAILS: bool | None = None

    @property
    def show_error_details(self) -> bool:
        if self.EXPOSE_ERROR_DETAILS is not None:
            return self.EXPOSE_ERROR_DETAILS
        return self.ENVIRONMENT != "production"

    # ------------------------------------------------------------------
    # Pydantic hook: coerce boolean env vars that may carry inline
    # descriptors (e.g. "false   # local only") coming from env files.
    # ------------------------------------------------------------------

    @model_validator(mode="before")
    @classmethod
    def _sanitize_bool_tokens(cls, data):  # type: ignore[return-value]
        for key in _BOOL_SETTINGS:
            if key in data and isinstance(data[key], str):
                raw = data[key]
                token = raw.split("#", 1)[0].strip().split()
                data[key] = token[0] if token else raw
        return data

    @model_validator(mode="after")
    def _check_production_secrets(self):
        if self.ENVIRONMENT != "production":
            return self
        if len(self.SECRET_KEY) < 32:
            raise ValueError("SECRET_KEY should be at least 32 characters long")
        if not self.ADMIN_PASSWORD_HASH or not self.ADMIN_PASSWORD_HASH.startswith("$2"):
            raise ValueError("ADMIN_PASSWORD_HASH must be a bcrypt hash")
        return self

    # ------------------------------------------------------------------
    # Observability / Telemetry
    # ------------------------------------------------------------------

    # Master on/off switch – when false no observability instrumentation is
    # initialised.
    OBSERVABILITY_ENABLED: bool = Field(
        default=True,
        description="Globally enable/disable all extra observability (metrics/traces/log shipping).",
    )

    # --- OpenTelemetry ---------------------------------------------------

    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = Field(
        default=None,
        description="Base OTLP endpoint, e.g. http://otelcol:4317.  If unset OTLP export is disabled.",
    )
    OTEL_TRACES_ENABLED: bool = True
    OTEL_METRICS_ENABLED: bool = False
    # "grpc" (default) or "http"
    OTEL_EXPORTER_OTLP_PROTOCOL: str = Field(default="grpc")
    # Comma-separated key=value list, e.g. "api-token=abcd123,env=dev".
    OTEL_EXPORTER_OTLP_HEADERS: str | None = Field(default=None)
    OTEL_TRACES_SAMPLER_RATIO: float = Field(default=1.0, ge=0.0, le=1.0)

    # --- Centralised logging (Loki) --------------------------------------

    LOKI_ENABLED: bool = Field(
        default=False, description="Enable structured log shipping to Loki."
    )
    LOKI_ENDPOINT: str | None = Field(
        default=None,
        description="Loki push API endpoint, e.g. http://loki:3100/loki/api/v1/push.",
    )
    LOKI_EXTRA_LABELS: str | None = Field(default=None)
    LOG_DIR: str = "logs"


settings = Settings()
