"""Database models for reqflow."""

from reqflow.db.models.user import User
from reqflow.db.models.request import Request, RequestHistory

__all__ = [
    "User",
    "Request",
    "RequestHistory",
]
