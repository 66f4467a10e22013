"""Pydantic schemas for accounts and sessions."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RegisterRequest(BaseModel):
    # Validated in UserService so the client gets the exact error messages
    # the board UI displays.
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str


class AuthStatus(BaseModel):
    message: str
    authenticated: bool


class UserRead(BaseModel):
    """Profile view. The password hash never leaves the service layer."""
    id: uuid.UUID
    email: str
    created_at: Optional[datetime]

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )
