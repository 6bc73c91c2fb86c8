"""
Payment-specific exceptions for payment operations.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── VendorNotReady - Vendor has no account or onboarding is incomplete
    ├── NotRefundable - Business policy rejects the refund/void
    ├── AlreadyRefunded - Order was already refunded (idempotent success)
    ├── AlreadyCancelled - Payment was already voided (idempotent success)
    └── ProcessorError - Base for all payment processor errors
        ├── ProcessorCardDeclined - Card declined (permanent)
        ├── ProcessorRequestError - Invalid request or credentials (permanent)
        │   └── WebhookSignatureError - Webhook signature rejected
        └── ProcessorUnavailable - Transport or processor outage (retry)
            └── ProcessorRateLimited - Rate limited (retry)

    SiblingServiceError - Order/restaurant service failure (ExternalServiceError)
    StaleRecordError - Optimistic locking conflict (ConflictError)
    InvalidStateTransitionError - FSM transition not allowed (ConflictError)

Retry Semantics:
    VendorNotReady is not retryable until onboarding completes.
    ProcessorUnavailable is retryable: either nothing was committed
    locally, or the call carried an idempotency key.
    NotRefundable / AlreadyRefunded / AlreadyCancelled are answers, not
    failures; the decision engine reports them as actions instead of
    raising them.

Usage:
    from payments.exceptions import ProcessorError, VendorNotReady

    try:
        CheckoutService.build_checkout_session(params)
    except VendorNotReady as e:
        return Response(e.to_dict(), status=e.http_status)
    except ProcessorError as e:
        if e.is_retryable:
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """Base exception for all payment operations."""

    default_error_code: str = "PAYMENT_ERROR"


class VendorNotReady(PaymentError):
    """
    Raised when a vendor cannot take payments.

    The vendor has no connected account, or onboarding is not COMPLETE.
    Callers should not retry until onboarding is fixed.

    Example:
        if account is None or not account.is_payment_ready:
            raise VendorNotReady(
                "Vendor has not completed payment onboarding",
                details={"owner_user_id": str(owner_id)},
            )
    """

    default_error_code: str = "VENDOR_NOT_READY"


class NotRefundable(PaymentError):
    """Business policy rejects the refund or void."""

    default_error_code: str = "NOT_REFUNDABLE"
    http_status: int = 409


class AlreadyRefunded(PaymentError):
    """The order's payment was already refunded."""

    default_error_code: str = "ALREADY_REFUNDED"
    http_status: int = 409


class AlreadyCancelled(PaymentError):
    """The order's payment was already voided."""

    default_error_code: str = "ALREADY_CANCELLED"
    http_status: int = 409


# =============================================================================
# Processor Exceptions
# =============================================================================


class ProcessorError(PaymentError):
    """
    Base exception for all payment processor errors.

    Attributes:
        provider_code: Processor error code (e.g. "resource_missing")
        decline_code: Card decline code, when the card was declined
        is_retryable: Whether retrying the same call can succeed

    Example:
        try:
            StripeAdapter.capture(provider_intent_id, idempotency_key=key)
        except ProcessorError as e:
            intent.record_failure(e.message)
    """

    default_error_code: str = "PROCESSOR_ERROR"
    http_status: int = 502
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if provider_code:
            details["provider_code"] = provider_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.provider_code = provider_code
        self.decline_code = decline_code


class ProcessorCardDeclined(ProcessorError):
    """Card was declined by the issuing bank (permanent)."""

    default_error_code: str = "CARD_DECLINED"
    http_status: int = 402


class ProcessorRequestError(ProcessorError):
    """
    Invalid request parameters or processor credentials.

    Permanent: retrying the same request gives the same answer.
    """

    default_error_code: str = "PROCESSOR_INVALID_REQUEST"
    http_status: int = 400


class WebhookSignatureError(ProcessorRequestError):
    """Webhook payload failed signature verification."""

    default_error_code: str = "INVALID_WEBHOOK_SIGNATURE"


class ProcessorUnavailable(ProcessorError):
    """
    Processor could not be reached or returned a server error.

    Transient: safe to retry with backoff.
    """

    default_error_code: str = "PROCESSOR_UNAVAILABLE"
    http_status: int = 503
    is_retryable: bool = True


class ProcessorRateLimited(ProcessorUnavailable):
    """Processor rate limit exceeded (transient)."""

    default_error_code: str = "PROCESSOR_RATE_LIMITED"


# =============================================================================
# Sibling Service Exceptions
# =============================================================================


class SiblingServiceError(ExternalServiceError):
    """
    An internal sibling service (orders, restaurants) failed.

    Clients log and convert this into a fail-open answer; it only
    escapes when a caller asks for strict behavior.
    """

    default_error_code: str = "SIBLING_SERVICE_ERROR"


# =============================================================================
# Concurrency Control Exceptions
# =============================================================================


class StaleRecordError(ConflictError):
    """
    Raised when optimistic locking detects a concurrent modification.

    The record's version no longer matches the version the caller read.
    Re-read the record and re-evaluate before retrying.

    Example:
        try:
            account = check_version(VendorAccount, pk, expected_version=3)
        except StaleRecordError:
            account = VendorAccount.objects.get(pk=pk)
    """

    default_error_code: str = "STALE_RECORD"


class InvalidStateTransitionError(ConflictError):
    """Raised when a django-fsm transition is not allowed from the current state."""

    default_error_code: str = "INVALID_STATE_TRANSITION"
