"""Service layer package initializer.

This re-exports individual domain services so that callers can simply
``from cinestream.services import movie_service, review_service``.
"""

from importlib import import_module
from types import ModuleType
from typing import TYPE_CHECKING

# Lazily import modules to avoid circular dependencies where possible.

__all__ = [
    "media_urls",
    "movie_service",
    "review_service",
    "comment_service",
    "auth_service",
    "upload_service",
]

if TYPE_CHECKING:
    # During type checking we want the actual modules.
    from . import media_urls as media_urls  # noqa: F401
    from . import movie_service as movie_service  # noqa: F401
    from . import review_service as review_service  # noqa: F401
    from . import comment_service as comment_service  # noqa: F401
    from . import auth_service as auth_service  # noqa: F401
    from . import upload_service as upload_service  # noqa: F401
else:
    # At runtime perform the import lazily to keep import graph lighter.
    def __getattr__(name: str) -> ModuleType:  # noqa: D401
        if name in __all__:
            module = import_module(f"cinestream.services.{name}")
            globals()[name] = module
            return module
        raise AttributeError(name)
