"""Authentication of the single configured administrator."""

from __future__ import annotations

import logging
from typing import Optional

from cinestream.core.config import settings
from cinestream.core.security import create_access_token, verify_password
from cinestream.models.auth import AdminPrincipal

# Login attempts are recorded on a dedicated logger so they can be routed
# separately from application logs.
security_logger = logging.getLogger("cinestream.security")


def admin_principal(username: Optional[str] = None) -> AdminPrincipal:
    return AdminPrincipal(username=username or settings.ADMIN_USERNAME)


def authenticate_admin(
    username: str, password: str, origin: str
) -> Optional[AdminPrincipal]:
    """Return the admin principal when the credentials match, else ``None``."""

    security_logger.info("Login attempt for user %r from %s", username, origin)

    if not settings.ADMIN_PASSWORD_HASH:
        security_logger.error(
            "Login refused for %r from %s: ADMIN_PASSWORD_HASH is not configured",
            username,
            origin,
        )
        return None

    if username != settings.ADMIN_USERNAME:
        security_logger.warning(
            "Failed login from %s: unknown username %r", origin, username
        )
        return None

    if not verify_password(password, settings.ADMIN_PASSWORD_HASH):
        security_logger.warning(
            "Failed login from %s: wrong password for %r", origin, username
        )
        return None

    security_logger.info("Successful login for %r from %s", username, origin)
    return admin_principal(username)


def issue_access_token(principal: AdminPrincipal) -> str:
    return create_access_token(
        subject=principal.id,
        username=principal.username,
        is_admin=principal.isAdmin,
    )
