from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import jwt
from pydantic import BaseModel

from cinestream.core.config import settings


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    username: Optional[str] = None
    isAdmin: bool = False
    exp: Optional[datetime] = None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    password_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash (e.g. truncated env var) never matches.
        return False


def get_password_hash(password: str) -> str:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")


def create_access_token(
    subject: str,
    username: str,
    is_admin: bool,
    expires_delta: Optional[timedelta] = None,
) -> str:
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode_data = TokenPayload(
        sub=str(subject), username=username, isAdmin=is_admin, exp=expire
    )
    to_encode = to_encode_data.model_dump(exclude_none=True)
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )
    return encoded_jwt
