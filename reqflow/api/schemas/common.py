"""Common schemas for the reqflow API."""

from typing import Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    code: Optional[str] = None
