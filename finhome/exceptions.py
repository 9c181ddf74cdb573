"""Domain exceptions raised by services and translated to HTTP errors by routes."""

from typing import Optional


class NotFoundError(Exception):
    """Raised when a resource does not exist or is not visible to the caller."""

    pass


class PermissionDeniedError(Exception):
    """Raised when a resource exists but belongs to another user."""

    pass


class LimitExceededError(Exception):
    """Raised when a subscription tier limit would be exceeded."""

    def __init__(self, message: str, limit: Optional[int] = None, current: Optional[int] = None):
        super().__init__(message)
        self.limit = limit
        self.current = current

    def to_detail(self) -> dict:
        """Build the HTTP error detail payload."""
        return {"message": str(self), "limit": self.limit, "current": self.current}
