"""Credential store accessor for the users table.

Point lookups by id and (lowercased) email, insert, in-place update,
delete, and password overwrite. Statements are built with SQLAlchemy, so
values are always bound parameters. Each call runs under one
store_operation() budget.
"""

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from userauth.core.database import store_operation
from userauth.models.user import User

# Columns update() may touch.
# Security: password_hash changes only through reset_password(); id and the
# timestamps are never client-controlled.
_UPDATABLE_FIELDS: frozenset[str] = frozenset({"email", "first_name", "last_name"})


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:
    """Static async helpers over the users table.

    The caller passes the AsyncSession and decides when to commit.

    Raises:
        StoreTimeoutError: From any method, when the store is too slow.
        PersistenceError: From any method, on store failure.
    """

    @staticmethod
    async def get_all(db: AsyncSession) -> Sequence[User]:
        """All users ordered by last name (ties broken by id)."""
        stmt = select(User).order_by(User.last_name, User.id)
        async with store_operation():
            result = await db.execute(stmt)
            return result.scalars().all()

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> User | None:
        """The user with this id, or None."""
        async with store_operation():
            return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """The user registered under ``email`` (any case), or None."""
        stmt = select(User).where(User.email == _normalize_email(email))
        async with store_operation():
            result = await db.execute(stmt)
            return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        first_name: str = "",
        last_name: str = "",
    ) -> User:
        """Insert a user and return it with its new id.

        Args:
            db: Session to insert through.
            email: Login email; stored lowercased.
            password_hash: bcrypt hash, already computed by the caller.
            first_name: Given name.
            last_name: Family name.

        Raises:
            DuplicateKeyError: The email is already registered.
            ValueTooLargeError: A value exceeds its column.
        """
        user = User(
            email=_normalize_email(email),
            first_name=first_name,
            last_name=last_name,
            password_hash=password_hash,
        )
        async with store_operation():
            db.add(user)
            await db.flush()
            await db.refresh(user)
        return user

    @staticmethod
    async def update(
        db: AsyncSession,
        user_id: int,
        **changes: str,
    ) -> User | None:
        """Apply ``changes`` to one user; updated_at is bumped.

        Args:
            db: Session to update through.
            user_id: Target user.
            **changes: Any of email, first_name, last_name.

        Returns:
            The refreshed user, or None if it does not exist.

        Raises:
            ValueError: A field outside _UPDATABLE_FIELDS was given.
            DuplicateKeyError: The new email belongs to someone else.
        """
        rejected = sorted(set(changes) - _UPDATABLE_FIELDS)
        if rejected:
            msg = f"Cannot update fields: {', '.join(rejected)}"
            raise ValueError(msg)

        if "email" in changes:
            changes["email"] = _normalize_email(changes["email"])

        async with store_operation():
            user = await db.get(User, user_id)
            if user is None:
                return None
            for field, value in changes.items():
                setattr(user, field, value)
            await db.flush()
            await db.refresh(user)
        return user

    @staticmethod
    async def reset_password(
        db: AsyncSession, user_id: int, *, password_hash: str
    ) -> User | None:
        """Overwrite the stored hash. Returns None for an unknown user."""
        async with store_operation():
            user = await db.get(User, user_id)
            if user is None:
                return None
            user.password_hash = password_hash
            await db.flush()
            await db.refresh(user)
        return user

    @staticmethod
    async def delete(db: AsyncSession, user_id: int) -> bool:
        """Remove a user; the database cascades the delete to their token.

        Returns:
            Whether a row was removed.
        """
        stmt = delete(User).where(User.id == user_id)
        async with store_operation():
            result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count > 0
