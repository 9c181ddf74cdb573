"""Schemas shared across endpoints."""

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class Pagination(BaseModel):
    """Pagination block returned with list endpoints."""

    total: int = Field(..., ge=0)
    limit: int
    offset: int
    has_more: bool

    @classmethod
    def build(cls, total: int, limit: int, offset: int) -> "Pagination":
        return cls(total=total, limit=limit, offset=offset, has_more=offset + limit < total)


def reject_null(value):
    """Refuse an explicit null for a field whose column cannot be cleared."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value
