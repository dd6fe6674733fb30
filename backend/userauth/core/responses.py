"""JSON envelopes shared by every endpoint.

Success bodies are ``{"data": ..., "message": ...}``; failures are
``{"error": {"code", "message", "details"}}`` and are built only by the
exception handlers in ``userauth.main``.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Success envelope; ``message`` is a short human-readable note."""

    data: T
    message: str | None = None


class ErrorDetail(BaseModel):
    """Machine-readable ``code``, client-safe ``message``, optional field errors."""

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Failure envelope."""

    error: ErrorDetail
