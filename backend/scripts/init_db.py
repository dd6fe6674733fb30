"""Migrate the schema, optionally seed a demo user and purge expired tokens.

Usage:
    python -m scripts.init_db
    python -m scripts.init_db --seed-email demo@example.com --seed-password 'Passw0rd!'
    python -m scripts.init_db --purge-expired

Safe to re-run: applied revisions are skipped, and an existing seed user is
left untouched.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from userauth.core.config import settings
from userauth.core.database import build_engine, check_connection
from userauth.core.passwords import hash_password
from userauth.repositories.token_repository import TokenRepository
from userauth.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


def alembic_config(database_url: str | None = None) -> Config:
    """Alembic config pointing at the bundled revisions.

    Built without an ini file; fileConfig() would disable existing loggers.

    Args:
        database_url: Target database. Defaults to settings.database_url.
    """
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    if database_url is not None:
        cfg.attributes["database_url"] = database_url
    return cfg


async def run_migrations(
    database_url: str | None = None, revision: str = "head"
) -> None:
    """Upgrade the database to ``revision``.

    Alembic's env runs its own event loop, so the upgrade happens in a
    worker thread.
    """
    await asyncio.to_thread(
        command.upgrade, alembic_config(database_url), revision
    )


async def seed_user(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
) -> int:
    """Insert the seed user unless the email already exists.

    Returns:
        ID of the seed user.
    """
    existing = await UserRepository.get_by_email(session, email)
    if existing is not None:
        logger.info("Seed user %s already exists (id=%s)", email, existing.id)
        return existing.id

    user = await UserRepository.create(
        session,
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
    )
    logger.info("Created seed user %s (id=%s)", email, user.id)
    return user.id


async def purge_expired_tokens(session: AsyncSession) -> int:
    """Delete every expired token. Returns how many were removed."""
    deleted = await TokenRepository.delete_expired(session)
    logger.info("Purged %d expired token(s)", deleted)
    return deleted


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed-email")
    parser.add_argument("--seed-password")
    parser.add_argument("--seed-first-name", default="Demo")
    parser.add_argument("--seed-last-name", default="User")
    parser.add_argument(
        "--purge-expired",
        action="store_true",
        help="delete tokens whose expiry has passed",
    )
    args = parser.parse_args(argv)
    if bool(args.seed_email) != bool(args.seed_password):
        parser.error("--seed-email and --seed-password must be given together")
    return args


async def main(argv: list[str] | None = None) -> int:
    """CLI entry point: migrate, then seed and purge as requested."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = build_engine(settings)
    try:
        if not await check_connection(engine):
            return 1

        await run_migrations(settings.database_url)
        logger.info("Database schema is at the latest revision")

        if not (args.seed_email or args.purge_expired):
            return 0

        factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )
        async with factory() as session:
            if args.seed_email:
                await seed_user(
                    session,
                    email=args.seed_email,
                    password=args.seed_password,
                    first_name=args.seed_first_name,
                    last_name=args.seed_last_name,
                )
            if args.purge_expired:
                await purge_expired_tokens(session)
            await session.commit()
    finally:
        await engine.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
