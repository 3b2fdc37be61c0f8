"""User schema definitions.

This module defines the User record and the request/response bodies of the
authentication endpoints.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

import pytz
from pydantic import BaseModel, Field


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    id: str = Field(description="The unique identifier of the user.")
    username: str = Field(description="Unique, case-sensitive login name.")
    password_hash: str = Field(description="bcrypt hash of the password.")
    role: Role = Field(default=Role.USER, description="Authorization role.")
    created_at: datetime = Field(
        description="The time when the user was created.",
        default_factory=lambda: datetime.now(pytz.utc),
    )


class TokenIdentity(BaseModel):
    """Identity carried inside a session token."""

    id: str
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class RegisterRequest(BaseModel):
    # Presence is checked by the handler so that a missing field reads as a
    # plain 400 with a fixed message
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[Role] = None
    adminToken: Optional[str] = Field(
        default=None,
        description="Required for role=admin when ADMIN_REGISTRATION_TOKEN is set.",
    )


class RegisterResponse(BaseModel):
    message: str
    userId: str
    username: str


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    message: str
    token: str
    role: Role


class VerifyResponse(BaseModel):
    isValid: bool
    username: str
    role: Role
    isAdmin: bool
