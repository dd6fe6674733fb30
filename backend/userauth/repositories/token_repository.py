"""Repository for Token persistence.

Tokens are looked up by the SHA-256 digest of the presented plaintext;
the plaintext itself never reaches the database. Each method runs inside
one store_operation() budget.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from userauth.core.database import store_operation
from userauth.core.tokens import hash_token
from userauth.models.token import Token
from userauth.models.user import User


class TokenRepository:
    """Stateless repository for Token table operations.

    All methods are static; there is no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.

    Raises:
        StoreTimeoutError: From any method, when the store is too slow.
        PersistenceError: From any method, on store failure.
    """

    @staticmethod
    async def get_by_plaintext(db: AsyncSession, plaintext: str) -> Token | None:
        """Look up a token by the plaintext the client presented.

        Args:
            db: Async database session.
            plaintext: Token as handed to the client.

        Returns:
            Token if a stored digest matches, None otherwise.
        """
        stmt = select(Token).where(Token.token_hash == hash_token(plaintext))
        async with store_operation():
            result = await db.execute(stmt)
            return result.scalar_one_or_none()

    @staticmethod
    async def get_user_for_token(db: AsyncSession, token: Token) -> User | None:
        """Resolve the user that owns a token.

        Args:
            db: Async database session.
            token: Stored token.

        Returns:
            Owning User, or None if the user no longer exists.
        """
        async with store_operation():
            return await db.get(User, token.user_id)

    @staticmethod
    async def save(db: AsyncSession, token: Token, user: User) -> Token:
        """Replace every stored token of a user with ``token``.

        Delete and insert run in the caller's transaction under a single
        time budget, so they commit or roll back together. Two concurrent
        saves for the same user race on the unique user_id constraint: the
        first commit wins and the other fails with DuplicateKeyError. Holders
        of a superseded token are not notified; their next lookup misses.

        Args:
            db: Async database session.
            token: New token (token_hash and expiry set, not yet persisted).
            user: Owning user. Its id and current email are copied onto
                the token.

        Returns:
            Persisted Token with database-generated fields populated.
        """
        token.user_id = user.id
        token.email = user.email

        async with store_operation():
            await db.execute(delete(Token).where(Token.user_id == user.id))
            db.add(token)
            await db.flush()
            await db.refresh(token)
        return token

    @staticmethod
    async def delete_by_plaintext(db: AsyncSession, plaintext: str) -> None:
        """Delete the token matching a plaintext. Deleting nothing is fine.

        Args:
            db: Async database session.
            plaintext: Token as handed to the client.
        """
        stmt = delete(Token).where(Token.token_hash == hash_token(plaintext))
        async with store_operation():
            await db.execute(stmt)

    @staticmethod
    async def delete_expired(db: AsyncSession) -> int:
        """Delete all expired tokens (periodic cleanup).

        Args:
            db: Async database session.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(Token).where(Token.expiry <= datetime.now(UTC))
        async with store_operation():
            result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
