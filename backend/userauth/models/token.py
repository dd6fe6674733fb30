"""Token model - opaque bearer credentials.

Only the SHA-256 digest of a token is stored. The plaintext exists once,
in the response to the call that issued it.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Identity, Index, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from userauth.core.tokens import DIGEST_SIZE
from userauth.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from userauth.models.user import User


class Token(Base, TimestampMixin):
    """Bearer token for one user.

    Attributes:
        id: Integer primary key.
        user_id: Owning user. Unique: a user has at most one stored token.
        email: Owner's email, copied from the user at issuance.
        token_hash: SHA-256 digest of the plaintext token.
        expiry: Absolute expiry instant. Valid while now < expiry.
        created_at: Issuance timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
    """

    __tablename__ = "tokens"
    __table_args__ = (Index("idx_tokens_expiry", "expiry"),)

    id: Mapped[int] = mapped_column(Identity(), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    token_hash: Mapped[bytes] = mapped_column(
        LargeBinary(DIGEST_SIZE),
        unique=True,
        nullable=False,
    )
    expiry: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="tokens")
