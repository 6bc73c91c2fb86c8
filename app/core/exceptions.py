"""
Base exception classes for application-wide error handling.

This module provides the exception hierarchy shared by every app:
- Consistent JSON error bodies across the API
- Machine-readable error codes for calling services
- An HTTP status per error class so views never guess

Exception Hierarchy:
    BaseApplicationError (base, 400)
    ├── ValidationError - Input or precondition failures (400)
    ├── NotFoundError - Resource not found (404)
    ├── ConflictError - State conflicts, stale versions (409)
    └── ExternalServiceError - Processor or sibling service failures (502)

Usage:
    from core.exceptions import NotFoundError, ValidationError

    raise ValidationError("Amount must be positive", error_code="INVALID_AMOUNT")

    raise NotFoundError(
        "No payment intent for order",
        error_code="PAYMENT_INTENT_NOT_FOUND",
        details={"order_id": str(order_id)},
    )

    # In a view
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, provider codes, etc.)
        http_status: Status code API views use when surfacing the error

    Example:
        try:
            CheckoutService.build_checkout_session(request_data)
        except BaseApplicationError as e:
            logger.warning(f"Checkout rejected: {e.error_code}")
            return Response(e.to_dict(), status=e.http_status)
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "message": "Vendor has not completed onboarding",
                "error_code": "VENDOR_NOT_READY",
                "details": {"owner_user_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "message": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input or a business precondition is invalid.

    Use for:
    - Amounts that cannot be expressed in minor units
    - Missing configuration a request depends on
    - Operations requested before a prerequisite exists

    Note:
        DRF serializers cover request-shape validation.
        Use this for service-layer checks.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Use for single-resource lookups where existence is expected
    (a payment intent by id, a webhook event by id).
    """

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Optimistic locking failures (version mismatch)
    - Invalid state transitions
    - Unique constraint races
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for:
    - Payment processor failures
    - Sibling service (orders, restaurants) failures
    - Unexpected external responses

    Note:
        Log the original error for debugging but keep provider
        internals out of client-facing messages.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 502
