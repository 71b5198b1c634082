"""Pydantic models for administrative authentication.

There is no user table: the only principal is the configured administrator.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8, max_length=100)


class AdminPrincipal(BaseModel):
    """The single ``Admin`` variant of the request principal."""

    kind: Literal["admin"] = "admin"
    id: str = "admin"
    username: str
    name: str = "Admin"
    isAdmin: bool = True


Principal = AdminPrincipal


class LoginResponse(BaseModel):
    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    user: AdminPrincipal


__all__ = [
    "LoginRequest",
    "AdminPrincipal",
    "Principal",
    "LoginResponse",
]
