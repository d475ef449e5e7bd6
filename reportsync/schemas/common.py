from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope shared by every endpoint.

    ``message`` carries the overall outcome of multi-pair operations, whose
    per-pair results live in ``data``.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    message: str | None = None
    meta: dict | None = None

    @classmethod
    def ok(
        cls, data: T, message: str | None = None, meta: dict | None = None,
    ) -> "ApiResponse[T]":
        return cls(success=True, data=data, message=message, meta=meta)

    @classmethod
    def fail(
        cls, error: str, data: T | None = None, meta: dict | None = None,
    ) -> "ApiResponse[T]":
        return cls(success=False, data=data, error=error, meta=meta)
