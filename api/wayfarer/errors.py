"""Domain errors raised by the service layer.

Routers never catch these; ``main.py`` renders them as problem responses.
"""

from __future__ import annotations

from fastapi import status


class WayfarerError(Exception):
    """Base class for errors raised at a service operation boundary."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    title: str = "Bad Request"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.title
        super().__init__(self.detail)


class NotFound(WayfarerError):
    """Referenced user, content item or edge does not exist (or must look that way)."""

    status_code = status.HTTP_404_NOT_FOUND
    title = "Not Found"


class AlreadyExists(WayfarerError):
    """Duplicate follow edge."""

    status_code = status.HTTP_409_CONFLICT
    title = "Already Exists"


class InvalidOperation(WayfarerError):
    """Self-follow, unfollow of a missing edge, and similar impossible transitions."""

    status_code = status.HTTP_400_BAD_REQUEST
    title = "Invalid Operation"


class Forbidden(WayfarerError):
    """Acting user does not own the item being mutated."""

    status_code = status.HTTP_403_FORBIDDEN
    title = "Forbidden"


class Conflict(WayfarerError):
    """Unique-key violation surfaced from the store (username, email)."""

    status_code = status.HTTP_409_CONFLICT
    title = "Conflict"
