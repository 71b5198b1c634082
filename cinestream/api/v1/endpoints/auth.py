"""API endpoints for administrative authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from cinestream.api.v1.dependencies import get_client_origin, get_current_admin_identity
from cinestream.core.config import settings
from cinestream.core.limiter import limiter, login_rate_limit
from cinestream.models.auth import AdminPrincipal, LoginRequest, LoginResponse
from cinestream.models.common import MessageResponse
from cinestream.services import auth_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse, summary="Admin login")
@limiter.limit(login_rate_limit)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    origin: Annotated[str, Depends(get_client_origin)],
):
    """Exchange admin credentials for a JWT.

    The token is returned in the body and also set as an http-only cookie.
    """

    principal = auth_service.authenticate_admin(
        credentials.username, credentials.password, origin
    )
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_service.issue_access_token(principal)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite=settings.AUTH_COOKIE_SAMESITE,
    )
    return LoginResponse(token=token, user=principal)


@router.get("/me", response_model=AdminPrincipal, summary="Current identity")
async def read_me(
    principal: Annotated[AdminPrincipal, Depends(get_current_admin_identity)],
):
    return principal


@router.post("/logout", response_model=MessageResponse, summary="Logout")
async def logout(response: Response):
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite=settings.AUTH_COOKIE_SAMESITE,
    )
    return MessageResponse(message="Logged out successfully")
