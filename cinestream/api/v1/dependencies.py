from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from cinestream.core.config import settings
from cinestream.core.security import TokenPayload
from cinestream.models.auth import AdminPrincipal
from cinestream.services.auth_service import admin_principal
from cinestream.utils.net import client_ip


reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/login",
    auto_error=False,  # Handle missing token manually for clearer error
)


async def get_request_token(
    request: Request,
    bearer_token: Annotated[Optional[str], Depends(reusable_oauth2)],
) -> Optional[str]:
    """Bearer header first, then the http-only auth cookie."""

    if bearer_token:
        return bearer_token
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or None


async def get_current_token_payload(
    token: Annotated[Optional[str], Depends(get_request_token)],
) -> TokenPayload:
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload_dict = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        token_data = TokenPayload(**payload_dict)
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if token_data.sub is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: Subject missing",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token_data


async def get_current_admin_identity(
    payload: Annotated[TokenPayload, Depends(get_current_token_payload)],
) -> AdminPrincipal:
    """Resolve the token to the configured admin; 404 for any other identity."""

    if not payload.isAdmin or payload.username != settings.ADMIN_USERNAME:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
        )
    return admin_principal(payload.username)


# --- RBAC Dependencies ---
async def require_admin(
    payload: Annotated[TokenPayload, Depends(get_current_token_payload)],
) -> AdminPrincipal:
    if not payload.isAdmin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return admin_principal(payload.username)


# ---------------------------------------------------------------------------
# Request origin
# ---------------------------------------------------------------------------


async def get_client_origin(request: Request) -> str:
    return client_ip(request)


# ---------------------------------------------------------------------------
# Listing helper
# ---------------------------------------------------------------------------


class MovieListParams:
    """``limit`` and ``exclude`` query parameters of the movie listing."""

    def __init__(
        self,
        limit: Optional[int] = Query(
            None,
            ge=1,
            le=settings.MAX_LIST_LIMIT,
            description="Maximum number of movies to return",
        ),
        exclude: Optional[str] = Query(
            None, description="Movie id to leave out (e.g. the one being watched)"
        ),
    ) -> None:
        self.limit = limit
        self.exclude = exclude


movie_list_params = Annotated[MovieListParams, Depends()]
