"""Tests for migration 001: users and tokens tables.

Runs the revision against a fresh test schema and checks the constraints
the token store relies on: one token per user, unique digests, cascade on
user delete, and the expiry index. Requires PostgreSQL.
"""

import asyncio
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from alembic import command
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from scripts.init_db import alembic_config, run_migrations
from tests.conftest import TEST_DATABASE_URL, skip_if_no_postgres
from userauth.models import Base

_INSERT_USER = text(
    "INSERT INTO users (email, password_hash) VALUES (:email, 'x') RETURNING id"
)
_INSERT_TOKEN = text(
    "INSERT INTO tokens (user_id, email, token_hash, expiry) "
    "VALUES (:user_id, 'a@example.com', :digest, now() + interval '1 hour')"
)


# =============================================================================
# Helpers
# =============================================================================


async def _reset_schema(conn) -> None:
    """Drop and recreate the public schema."""
    await conn.execute(text("DROP SCHEMA public CASCADE"))
    await conn.execute(text("CREATE SCHEMA public"))


def _table_columns(sync_conn, table: str) -> set[str]:
    return {column["name"] for column in inspect(sync_conn).get_columns(table)}


def _index_names(sync_conn, table: str) -> set[str]:
    return {index["name"] for index in inspect(sync_conn).get_indexes(table)}


# =============================================================================
# Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def migration_engine():
    """Engine on a test schema upgraded to the latest revision."""
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await _reset_schema(conn)

    await run_migrations(TEST_DATABASE_URL)

    yield engine

    async with engine.begin() as conn:
        await _reset_schema(conn)
    await engine.dispose()


@pytest_asyncio.fixture
async def migration_session(
    migration_engine,
) -> AsyncGenerator[AsyncSession, None]:
    """Session on the migrated database."""
    session_factory = async_sessionmaker(
        migration_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


async def _insert_user(session: AsyncSession, email: str) -> int:
    result = await session.execute(_INSERT_USER, {"email": email})
    return result.scalar_one()


# =============================================================================
# Schema shape
# =============================================================================


class TestSchemaShape:
    """The migrated tables match the ORM models."""

    async def test_columns_match_models(self, migration_engine):
        """Every mapped column exists in the migrated tables."""
        async with migration_engine.connect() as conn:
            for table in ("users", "tokens"):
                columns = await conn.run_sync(_table_columns, table)
                expected = {c.name for c in Base.metadata.tables[table].columns}
                assert columns == expected

    async def test_expiry_index_exists(self, migration_engine):
        """tokens.expiry is indexed for the expired-token sweep."""
        async with migration_engine.connect() as conn:
            indexes = await conn.run_sync(_index_names, "tokens")
        assert "idx_tokens_expiry" in indexes

    async def test_revision_recorded(self, migration_session: AsyncSession):
        """alembic_version points at the initial revision."""
        result = await migration_session.execute(
            text("SELECT version_num FROM alembic_version")
        )
        assert result.scalar_one() == "001_users_tokens"

    async def test_name_defaults_to_empty(self, migration_session: AsyncSession):
        """first_name and last_name default to empty strings."""
        user_id = await _insert_user(migration_session, "names@example.com")
        result = await migration_session.execute(
            text("SELECT first_name, last_name FROM users WHERE id = :id"),
            {"id": user_id},
        )
        assert tuple(result.one()) == ("", "")


# =============================================================================
# Constraints
# =============================================================================


class TestConstraints:
    """Constraints enforced by the database."""

    async def test_email_is_unique(self, migration_session: AsyncSession):
        """Two users cannot share an email."""
        await _insert_user(migration_session, "dup@example.com")
        with pytest.raises(IntegrityError, match="uq_users_email"):
            await _insert_user(migration_session, "dup@example.com")

    async def test_one_token_per_user(self, migration_session: AsyncSession):
        """A second token row for the same user is rejected."""
        user_id = await _insert_user(migration_session, "one@example.com")
        await migration_session.execute(
            _INSERT_TOKEN, {"user_id": user_id, "digest": b"\x01" * 32}
        )
        with pytest.raises(IntegrityError, match="uq_tokens_user_id"):
            await migration_session.execute(
                _INSERT_TOKEN, {"user_id": user_id, "digest": b"\x02" * 32}
            )

    async def test_token_digest_is_unique(self, migration_session: AsyncSession):
        """Two tokens cannot share a digest."""
        first = await _insert_user(migration_session, "first@example.com")
        second = await _insert_user(migration_session, "second@example.com")
        await migration_session.execute(
            _INSERT_TOKEN, {"user_id": first, "digest": b"\x03" * 32}
        )
        with pytest.raises(IntegrityError, match="uq_tokens_token_hash"):
            await migration_session.execute(
                _INSERT_TOKEN, {"user_id": second, "digest": b"\x03" * 32}
            )

    async def test_token_requires_existing_user(
        self, migration_session: AsyncSession
    ):
        """A token cannot reference a missing user."""
        with pytest.raises(IntegrityError, match="fk_tokens_user_id_users"):
            await migration_session.execute(
                _INSERT_TOKEN, {"user_id": 999_999, "digest": b"\x04" * 32}
            )

    async def test_user_delete_cascades(self, migration_session: AsyncSession):
        """Deleting a user deletes their token."""
        user_id = await _insert_user(migration_session, "gone@example.com")
        await migration_session.execute(
            _INSERT_TOKEN, {"user_id": user_id, "digest": b"\x05" * 32}
        )
        await migration_session.execute(
            text("DELETE FROM users WHERE id = :id"), {"id": user_id}
        )
        result = await migration_session.execute(
            text("SELECT count(*) FROM tokens WHERE user_id = :id"),
            {"id": user_id},
        )
        assert result.scalar_one() == 0


# =============================================================================
# Downgrade
# =============================================================================


class TestDowngrade:
    """Downgrading to base removes both tables."""

    async def test_downgrade_drops_tables(self, migration_engine):
        """After downgrade neither table exists."""
        await asyncio.to_thread(
            command.downgrade, alembic_config(TEST_DATABASE_URL), "base"
        )
        async with migration_engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: set(inspect(sync_conn).get_table_names())
            )
        assert not tables & {"users", "tokens"}
