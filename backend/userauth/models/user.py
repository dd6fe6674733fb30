"""User model - identity and password credential."""

from typing import TYPE_CHECKING

from sqlalchemy import Identity, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from userauth.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from userauth.models.token import Token


class User(Base, TimestampMixin):
    """User account.

    Attributes:
        id: Integer primary key assigned by the database.
        email: Unique email address, stored lowercase.
        first_name: Given name.
        last_name: Family name.
        password_hash: bcrypt hash. Never serialized outward.
        created_at: Account creation timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Identity(), primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        server_default="",
        default="",
    )
    last_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        server_default="",
        default="",
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Relationships
    tokens: Mapped[list["Token"]] = relationship(
        "Token",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
