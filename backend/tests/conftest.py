import socket
from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from userauth.core.config import settings
from userauth.core.passwords import hash_password
from userauth.models import Base, User

# Tests never touch the development database
TEST_DATABASE_URL = settings.model_copy(
    update={"database_name": f"{settings.database_name}_test"}
).database_url

TEST_EMAIL = "dmitri@polyglot.dev"
TEST_PASSWORD = "ValidPass1"  # nosec B105  # gitleaks:allow
TEST_BCRYPT_ROUNDS = 4  # Low cost factor for fast tests


def _is_postgres_available() -> bool:
    """Probe the configured PostgreSQL port.

    Returns:
        True if PostgreSQL is reachable on the configured port, False otherwise.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex((settings.database_host, settings.database_port))
        sock.close()
        return result == 0
    except OSError:
        return False


# Probed once per test run
_POSTGRES_AVAILABLE = _is_postgres_available()


def skip_if_no_postgres() -> None:
    """Skip the calling test when no PostgreSQL server is listening.

    Used by every fixture that opens a database connection.
    """
    if not _POSTGRES_AVAILABLE:
        pytest.skip(
            f"PostgreSQL not available on port {settings.database_port}. "
            "Start a database and create the "
            f"'{settings.database_name}_test' schema owner to run store tests."
        )


@pytest.fixture(autouse=True)
def fast_bcrypt() -> Iterator[None]:
    """Use the minimum bcrypt cost factor during tests.

    Yields:
        None (autouse fixture).
    """
    original = settings.bcrypt_rounds
    settings.bcrypt_rounds = TEST_BCRYPT_ROUNDS
    yield
    settings.bcrypt_rounds = original


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine with a fresh schema.

    Skips test if PostgreSQL is not available.
    """
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session on the test database; uncommitted work is rolled back."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a user with a known password.

    Args:
        db_session: Database session from db_session fixture.

    Returns:
        Committed User model instance.
    """
    user = User(
        email=TEST_EMAIL,
        first_name="Dmitri",
        last_name="Johnson",
        password_hash=hash_password(TEST_PASSWORD, rounds=TEST_BCRYPT_ROUNDS),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def client(db_engine) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app, backed by the test database.

    Sets up:
    - Test database connection via dependency override (commit per request)
    - httpx.AsyncClient with ASGI transport

    Args:
        db_engine: Test database engine from db_engine fixture.

    Yields:
        AsyncClient with no Authorization header.
    """
    from userauth.core.database import get_db
    from userauth.main import app

    test_session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def login(client: AsyncClient, email: str = TEST_EMAIL) -> str:
    """Log in through the API and return the plaintext token."""
    response = await client.post(
        "/api/v1/users/login",
        json={"email": email, "password": TEST_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]["token"]


def bearer(token: str) -> dict[str, str]:
    """Build an Authorization header for a plaintext token."""
    return {"Authorization": f"Bearer {token}"}
