"""CineStream FastAPI application.

Assembles the movie, auth, upload, comment and review routers under
``settings.API_PREFIX`` and renders every error as an RFC 7807 problem body.
"""

import logging
from http import HTTPStatus
from typing import Any, Dict, List, Optional

import httpx
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from httpcore import ConnectError as HttpcoreConnectError
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from cinestream.api.v1.endpoints import auth, comments, movies, reviews, uploads
from cinestream.core.config import settings
from cinestream.core.limiter import limiter
from cinestream.db.astra_client import init_astra_db
from cinestream.models.common import ProblemDetail
from cinestream.utils.observability import configure_observability

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME, version=settings.APP_VERSION)

# ---------------------------------------------------------------------------
# CORS middleware
#
# See: https://fastapi.tiangolo.com/tutorial/cors/
# ---------------------------------------------------------------------------

logger.debug("CORS origins: %s", settings.parsed_cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.parsed_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Rate limiting (slowapi): default limit on every route, stricter on login
# ---------------------------------------------------------------------------

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# API router
api_router = APIRouter(prefix=settings.API_PREFIX)
api_router.include_router(movies.router)
api_router.include_router(auth.router)
api_router.include_router(uploads.router)
api_router.include_router(comments.router)
api_router.include_router(reviews.router)

app.include_router(api_router)

configure_observability(app)


@app.on_event("startup")
async def startup_event():
    await init_astra_db()
    logger.info(
        "%s %s started (environment=%s)",
        settings.PROJECT_NAME,
        settings.APP_VERSION,
        settings.ENVIRONMENT,
    )


# ---------------------------------------------------------------------------
# Error rendering
# ---------------------------------------------------------------------------


def _problem_response(
    request: Request,
    status_code: int,
    detail: Optional[str],
    *,
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    """Helper to build RFC7807-style JSON error bodies."""

    return JSONResponse(
        status_code=status_code,
        content=ProblemDetail(
            type="about:blank",
            title=HTTPStatus(status_code).phrase,
            status=status_code,
            detail=detail,
            instance=str(request.url),
            **extra,
        ).model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _problem_response(
        request,
        exc.status_code,
        str(exc.detail) if exc.detail is not None else None,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render body/query validation failures as 400 with per-field errors."""

    errors: List[Dict[str, Any]] = [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    logger.info("Request validation failed: %s", errors)
    return _problem_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "Request validation failed",
        errors=errors,
    )


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit exceeded on %s: %s", request.url.path, exc.detail)
    return _problem_response(
        request,
        status.HTTP_429_TOO_MANY_REQUESTS,
        f"Too many requests: {exc.detail}",
    )


@app.exception_handler(httpx.ConnectError)
async def httpx_connect_error_handler(request: Request, exc: httpx.ConnectError):
    logger.warning("AstraDB connectivity problem: %s", exc)
    logger.debug("Detailed stack trace for connectivity issue:", exc_info=True)
    return _problem_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Unable to reach data store. Please try again later.",
    )


@app.exception_handler(HttpcoreConnectError)
async def httpcore_connect_error_handler(request: Request, exc: HttpcoreConnectError):
    logger.warning("AstraDB connectivity problem: %s", exc)
    logger.debug("Detailed stack trace for connectivity issue:", exc_info=True)
    return _problem_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Unable to reach data store. Please try again later.",
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    error = f"{type(exc).__name__}: {exc}" if settings.show_error_details else None
    return _problem_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected internal server error occurred.",
        error=error,
    )


@app.get("/", summary="Health check")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}!"}
