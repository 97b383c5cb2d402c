"""Standard response envelopes shared by every endpoint."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Success envelope: ``{"success": true, "data": ..., "message": "..."}``."""

    success: bool = True
    data: T
    message: str = "Operation successful"


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Any | None = None


class ErrorResponse(BaseModel):
    """Error envelope. ``error.detail`` is only filled outside production."""

    success: bool = False
    message: str
    error: ErrorDetail
