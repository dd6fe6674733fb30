"""User management endpoints.

Signup is unauthenticated; every other endpoint requires a bearer token.
Passwords are strength-checked and bcrypt-hashed before they reach the
repository.
"""

from fastapi import APIRouter

from userauth.api.deps import CurrentUser, DbSession
from userauth.core.auth import validate_password_strength
from userauth.core.errors import NotFoundError, ValidationError
from userauth.core.passwords import hash_password
from userauth.core.responses import DataResponse
from userauth.repositories.user_repository import UserRepository
from userauth.schemas.user import (
    CreateUserRequest,
    ResetPasswordRequest,
    UpdateUserRequest,
    UserResponse,
)

router = APIRouter()


@router.get("")
async def list_users(
    current_user: CurrentUser,  # noqa: ARG001 - auth required
    db: DbSession,
) -> DataResponse[list[UserResponse]]:
    """List all users, sorted by last name."""
    users = await UserRepository.get_all(db)
    return DataResponse(
        data=[UserResponse.model_validate(u) for u in users],
        message="All users retrieved",
    )


@router.post("", status_code=201)
async def create_user(
    body: CreateUserRequest,
    db: DbSession,
) -> DataResponse[UserResponse]:
    """Register a new user with email + password.

    Raises DUPLICATE_KEY (409) if the email is taken.
    """
    validate_password_strength(body.password)

    user = await UserRepository.create(
        db,
        email=body.email,
        password_hash=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return DataResponse(data=UserResponse.model_validate(user), message="User created")


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: CurrentUser,  # noqa: ARG001 - auth required
    db: DbSession,
) -> DataResponse[UserResponse]:
    """Get one user by ID."""
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return DataResponse(data=UserResponse.model_validate(user))


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    body: UpdateUserRequest,
    current_user: CurrentUser,  # noqa: ARG001 - auth required
    db: DbSession,
) -> DataResponse[UserResponse]:
    """Update a user's email and names."""
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise ValidationError("No fields to update")

    user = await UserRepository.update(db, user_id, **changes)
    if user is None:
        raise NotFoundError("User", user_id)
    return DataResponse(data=UserResponse.model_validate(user), message="User updated")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: CurrentUser,  # noqa: ARG001 - auth required
    db: DbSession,
) -> DataResponse[dict]:
    """Delete a user and, by cascade, their token."""
    if not await UserRepository.delete(db, user_id):
        raise NotFoundError("User", user_id)
    return DataResponse(data={}, message="User deleted")


@router.post("/{user_id}/reset-password")
async def reset_password(
    user_id: int,
    body: ResetPasswordRequest,
    current_user: CurrentUser,  # noqa: ARG001 - auth required
    db: DbSession,
) -> DataResponse[dict]:
    """Rehash and overwrite a user's password."""
    validate_password_strength(body.password)

    user = await UserRepository.reset_password(
        db, user_id, password_hash=hash_password(body.password)
    )
    if user is None:
        raise NotFoundError("User", user_id)
    return DataResponse(data={}, message="Password reset")
