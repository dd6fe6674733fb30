"""User API request/response schemas.

The password hash is never part of any response.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

_MAX_NAME_LENGTH = 255
_MAX_PASSWORD_INPUT = 128


class CreateUserRequest(BaseModel):
    """Request body for POST /users."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1, max_length=_MAX_PASSWORD_INPUT)
    first_name: str = Field("", max_length=_MAX_NAME_LENGTH)
    last_name: str = Field("", max_length=_MAX_NAME_LENGTH)


class UpdateUserRequest(BaseModel):
    """Request body for PUT /users/{user_id}. Omitted fields are unchanged."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr | None = None
    first_name: str | None = Field(None, max_length=_MAX_NAME_LENGTH)
    last_name: str | None = Field(None, max_length=_MAX_NAME_LENGTH)


class ResetPasswordRequest(BaseModel):
    """Request body for POST /users/{user_id}/reset-password."""

    model_config = ConfigDict(extra="forbid")

    password: str = Field(min_length=1, max_length=_MAX_PASSWORD_INPUT)


class UserResponse(BaseModel):
    """User wire shape."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime
