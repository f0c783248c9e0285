"""
Shared error kinds.

Each failure kind is its own class so callers can tell them apart with
isinstance() across module boundaries.
"""

from typing import Optional


class KagentError(Exception):
    """Base class for all kagent errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class NotFoundError(KagentError):
    """Requested object does not exist."""


class ConflictError(KagentError):
    """Object already exists."""


class InternalError(KagentError):
    """Backend failure that is not the caller's fault."""


__all__ = ["KagentError", "NotFoundError", "ConflictError", "InternalError"]
