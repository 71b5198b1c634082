"""Version string reported in the OpenAPI document and telemetry resources.

An installed distribution wins; a source checkout reads ``APP_VERSION`` from
the environment and otherwise reports ``0.0.0-dev``.
"""

from __future__ import annotations

import os
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as distribution_version

PACKAGE_NAME = "cinestream-fastapi-backend"


def resolve_version(package: str = PACKAGE_NAME) -> str:
    try:
        return distribution_version(package)
    except PackageNotFoundError:
        return os.getenv("APP_VERSION", "0.0.0-dev")


__version__: str = resolve_version()

__all__ = ["__version__", "PACKAGE_NAME", "resolve_version"]
