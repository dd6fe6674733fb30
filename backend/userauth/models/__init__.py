"""ORM models.

Importing this package registers every table on Base.metadata.
"""

from userauth.models.base import Base, TimestampMixin
from userauth.models.token import Token
from userauth.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "Token",
    "User",
]
