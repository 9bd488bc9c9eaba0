"""
Response envelopes shared by the metered endpoints.

Success: {"success": true, "data": {...}}
Errors are rendered by the exception handlers in main.py:
         {"success": false, "error": "<code>", "message": "<text>"}
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
