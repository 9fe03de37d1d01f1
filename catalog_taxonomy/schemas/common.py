"""Common schemas: operation results and API envelopes."""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class FailureKind(str, Enum):
    """Why an operation did not succeed."""

    VALIDATION = "validation"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STORE = "store"
    CANCELLED = "cancelled"


class OperationResult(BaseModel, Generic[T]):
    """Typed success/failure wrapper returned by every taxonomy operation.

    Validation and lookup problems are reported here instead of being raised,
    so callers can show ``error`` inline next to the form that caused it.
    """

    success: bool = Field(description="Whether the operation completed successfully")
    data: T | None = Field(default=None, description="Operation result data")
    error: str | None = Field(default=None, description="Human-readable message if failed")
    error_type: FailureKind | None = Field(default=None, description="Failure category")
    duration_ms: int | None = Field(default=None, description="Operation duration in milliseconds")

    model_config = {"extra": "forbid"}

    @classmethod
    def ok(cls, data: Any = None, duration_ms: int | None = None) -> "OperationResult[T]":
        return cls(success=True, data=data, duration_ms=duration_ms)

    @classmethod
    def fail(cls, kind: FailureKind, message: str) -> "OperationResult[T]":
        return cls(success=False, error=message, error_type=kind)


class ErrorResponse(BaseModel):
    """Standard error response."""

    success: bool = Field(default=False)
    error: str = Field(description="Error message")
    error_type: str = Field(description="Error type/class name")
    detail: dict[str, Any] | None = Field(default=None, description="Additional error details")

    model_config = {"extra": "forbid"}


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Health status (healthy, degraded)")
    version: str = Field(description="Service version")
    environment: str = Field(description="Environment name")
    checks: dict[str, bool] = Field(default_factory=dict, description="Individual health checks")

    model_config = {"extra": "forbid"}
