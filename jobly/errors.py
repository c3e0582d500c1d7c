"""
Error types shared by the query builders and the model layer.

Each error carries an HTTP-style ``status`` so a front end can map it
to a response code without inspecting the message.
"""

from typing import List, Optional


class JoblyError(Exception):
    """Base error for Jobly."""

    status = 500

    def __init__(self, message: str = "", errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])


class ValidationError(JoblyError):
    """Raised when request data or filters are invalid (bad request)."""

    status = 400


class NotFoundError(JoblyError):
    """Raised when a requested company, job or user does not exist."""

    status = 404


__all__ = ["JoblyError", "ValidationError", "NotFoundError"]
