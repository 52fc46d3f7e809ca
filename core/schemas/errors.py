"""
Schemas - Error Taxonomy
File: errors.py

Purpose: Standard error taxonomy for the commitment tree and nullifier core.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the toolkit."""

    # Tree construction
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"

    # Hashing
    HASH_SERVICE_ERROR = "HASH_SERVICE_ERROR"

    # Proofs
    INVALID_PROOF_INDEX = "INVALID_PROOF_INDEX"

    # Encoding
    MALFORMED_INPUT = "MALFORMED_INPUT"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class ShadowDropError(BaseModel):
    """
    Base error model for structured error communication.

    Used when an error has to cross a serialization boundary (CLI JSON
    output, reports) instead of being raised.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.CAPACITY_EXCEEDED],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "ShadowDropException":
        """Convert this error model to a raised exception."""
        return ShadowDropException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class ShadowDropException(Exception):
    """
    Base exception for all toolkit errors.

    This exception carries structured error information and can be
    converted to a ShadowDropError model.
    """

    def __init__(
        self,
        message: str,
        code: str = "SHADOWDROP_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> ShadowDropError:
        """Convert this exception to a ShadowDropError model."""
        return ShadowDropError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class CapacityExceededError(ShadowDropException):
    """Raised when the recipient count exceeds the fixed tree capacity."""

    def __init__(
        self,
        message: str,
        recipient_count: int | None = None,
        capacity: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if recipient_count is not None:
            full_details["recipient_count"] = recipient_count
        if capacity is not None:
            full_details["capacity"] = capacity
        super().__init__(
            message=message,
            code=ErrorCodes.CAPACITY_EXCEEDED,
            details=full_details,
            retryable=False,
        )


class HashServiceError(ShadowDropException):
    """
    Raised when a delegated hash call fails.

    Covers transport errors, timeouts, non-success statuses and malformed
    responses. The core never retries; ``retryable`` only tells the caller
    whether a new build attempt could succeed.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        full_details = details or {}
        if status_code is not None:
            full_details["status_code"] = status_code
        if url:
            full_details["url"] = url
        super().__init__(
            message=message,
            code=ErrorCodes.HASH_SERVICE_ERROR,
            details=full_details,
            retryable=retryable,
        )
        self.status_code = status_code


class InvalidProofIndexError(ShadowDropException, IndexError):
    """Raised when a leaf index falls outside [0, capacity)."""

    def __init__(
        self,
        message: str,
        leaf_index: Any = None,
        capacity: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if leaf_index is not None:
            full_details["leaf_index"] = leaf_index
        if capacity is not None:
            full_details["capacity"] = capacity
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_PROOF_INDEX,
            details=full_details,
            retryable=False,
        )


class MalformedInputError(ShadowDropException, ValueError):
    """Raised when a wallet, amount, secret or buffer cannot be encoded."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field:
            full_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCodes.MALFORMED_INPUT,
            details=full_details,
            retryable=False,
        )
