"""API routers for reqflow."""

from . import auth
from . import users
from . import requests

__all__ = [
    "auth",
    "users",
    "requests",
]
