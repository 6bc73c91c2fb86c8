"""
Stripe API adapter for payment operations.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions. All Stripe calls go through this adapter so
error handling, timeouts, idempotency and logging stay consistent.
StripeAdapter satisfies payments.adapters.protocols.ProcessorClient.

Features:
- Configurable timeouts on all API calls
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Idempotency support for safe retries

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: SDK network retries (default: 0)

Usage:
    from payments.adapters import RefundParams, StripeAdapter

    session = StripeAdapter.create_checkout_session(params)

    result = StripeAdapter.refund(
        RefundParams(
            provider_intent_id="pi_xxx",
            amount_cents=2500,
            reason="requested_by_customer",
            idempotency_key="refund_by_order:...:1:a1b2c3d4",
        )
    )
"""

from __future__ import annotations

import hashlib
import logging
import time
from typing import TYPE_CHECKING, Any

import stripe
from django.conf import settings

from payments.adapters.protocols import (
    AccountResult,
    CheckoutSessionResult,
    PaymentIntentResult,
    RefundResult,
)
from payments.exceptions import (
    ProcessorCardDeclined,
    ProcessorRateLimited,
    ProcessorRequestError,
    ProcessorUnavailable,
    WebhookSignatureError,
)

if TYPE_CHECKING:
    import uuid

    from payments.adapters.protocols import CheckoutSessionParams, RefundParams


# Stripe rejects product names longer than this on some surfaces
PRODUCT_NAME_MAX_LENGTH = 24


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    Keys are deterministic: the same operation, entity and attempt always
    produce the same key, so a retried call collapses into the original
    one at Stripe.

    Example:
        key = IdempotencyKeyGenerator.generate(
            operation="refund_by_order",
            entity_id=f"{order_id}:{provider_intent_id}",
        )
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int = 1,
    ) -> str:
        """
        Generate an idempotency key.

        Args:
            operation: The Stripe operation (capture, refund_by_order, etc.)
            entity_id: The domain entity id
            attempt: Attempt number (default: 1)

        Returns:
            Formatted idempotency key string
        """
        entity_str = str(entity_id)
        hash_input = f"{operation}:{entity_str}:{attempt}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


def _object_id(value: Any) -> str | None:
    """Return the id of an expandable Stripe field (string id or object)."""
    if value is None or isinstance(value, str):
        return value or None
    return getattr(value, "id", None)


def _error_message(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, dict):
        return value.get("message")
    return getattr(value, "message", None)


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    All methods are classmethods - no instance state is maintained.
    Thread-safe for use from Celery workers.

    Usage:
        account = StripeAdapter.create_account(owner_user_id)
        url = StripeAdapter.create_onboarding_link(account.id, return_url, refresh_url)
        intent = StripeAdapter.capture("pi_xxx", idempotency_key=key)
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key, timeout and retries."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 0)
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    def _log_completed(
        cls, log_context: dict[str, Any], start_time: float, **fields: Any
    ) -> None:
        duration_ms = (time.time() - start_time) * 1000
        cls.get_logger().info(
            "Stripe operation completed",
            extra={**log_context, **fields, "duration_ms": duration_ms},
        )

    # =========================================================================
    # Connected Accounts
    # =========================================================================

    @classmethod
    def create_account(
        cls,
        owner_user_id: uuid.UUID,
        idempotency_key: str | None = None,
    ) -> AccountResult:
        """
        Create a Standard connected account for a vendor.

        Args:
            owner_user_id: Vendor user id, stored in account metadata
            idempotency_key: Key collapsing concurrent creates for one vendor

        Returns:
            AccountResult with the new account id and capability flags
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_account",
            "owner_user_id": str(owner_user_id),
            "idempotency_key": idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            account = stripe.Account.create(
                type="standard",
                country="US",
                metadata={"OwnerUserId": str(owner_user_id)},
                idempotency_key=idempotency_key,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        cls._log_completed(log_context, start_time, account_id=account.id)
        return cls._account_result(account)

    @classmethod
    def create_onboarding_link(
        cls,
        account_id: str,
        return_url: str,
        refresh_url: str,
    ) -> str:
        """
        Create a hosted onboarding link for a connected account.

        Returns:
            The onboarding URL (single use, short lived)
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_onboarding_link",
            "account_id": account_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            link = stripe.AccountLink.create(
                account=account_id,
                type="account_onboarding",
                return_url=return_url,
                refresh_url=refresh_url,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        cls._log_completed(log_context, start_time)
        return link.url

    @classmethod
    def get_account(cls, account_id: str) -> AccountResult:
        """Retrieve a connected account's capability flags."""
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "get_account",
            "account_id": account_id,
        }

        start_time = time.time()
        logger.debug("Starting Stripe operation", extra=log_context)

        try:
            account = stripe.Account.retrieve(account_id)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        cls._log_completed(
            log_context,
            start_time,
            charges_enabled=bool(account.charges_enabled),
            payouts_enabled=bool(account.payouts_enabled),
        )
        return cls._account_result(account)

    # =========================================================================
    # Checkout & Payment Intents
    # =========================================================================

    @classmethod
    def create_checkout_session(
        cls,
        params: CheckoutSessionParams,
    ) -> CheckoutSessionResult:
        """
        Create a destination-charge checkout session.

        The customer is charged params.amount_cents. Stripe keeps
        params.application_fee_cents for the platform and transfers the
        rest to params.destination_account_id. The backing payment intent
        is expanded so its id can be stored locally.

        Raises:
            ProcessorRequestError: Invalid parameters or destination account
            ProcessorUnavailable: Stripe unreachable (safe to retry)
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_checkout_session",
            "order_id": str(params.order_id),
            "amount_cents": params.amount_cents,
            "application_fee_cents": params.application_fee_cents,
            "destination_account_id": params.destination_account_id,
            "idempotency_key": params.idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        product_name = f"Order {params.order_id.hex}"[:PRODUCT_NAME_MAX_LENGTH]

        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                success_url=params.success_url,
                cancel_url=params.cancel_url,
                client_reference_id=str(params.order_id),
                line_items=[
                    {
                        "price_data": {
                            "currency": params.currency,
                            "unit_amount": params.amount_cents,
                            "product_data": {
                                "name": product_name,
                                "description": "TraditionalEats order",
                            },
                        },
                        "quantity": 1,
                    }
                ],
                payment_intent_data={
                    "application_fee_amount": params.application_fee_cents,
                    "transfer_data": {
                        "destination": params.destination_account_id,
                    },
                    "metadata": {"OrderId": str(params.order_id)},
                },
                expand=["payment_intent"],
                idempotency_key=params.idempotency_key,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        payment_intent_id = _object_id(session.payment_intent)
        cls._log_completed(
            log_context,
            start_time,
            session_id=session.id,
            payment_intent_id=payment_intent_id,
        )

        return CheckoutSessionResult(
            id=session.id,
            url=session.url,
            payment_intent_id=payment_intent_id,
            raw_response=session.to_dict(),
        )

    @classmethod
    def create_payment_intent(
        cls,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str | None = None,
    ) -> PaymentIntentResult:
        """
        Create a PaymentIntent with automatic payment methods.

        Returns:
            PaymentIntentResult including the client_secret for the app
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_payment_intent",
            "amount_cents": amount_cents,
            "currency": currency,
            "idempotency_key": idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_cents,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                idempotency_key=idempotency_key,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        cls._log_completed(
            log_context, start_time, payment_intent_id=intent.id, status=intent.status
        )
        return cls._intent_result(intent)

    @classmethod
    def confirm_payment_intent(
        cls,
        provider_intent_id: str,
        payment_method_id: str,
    ) -> PaymentIntentResult:
        """Confirm a PaymentIntent with a payment method."""
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "confirm_payment_intent",
            "payment_intent_id": provider_intent_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.confirm(
                provider_intent_id,
                payment_method=payment_method_id,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        cls._log_completed(log_context, start_time, status=intent.status)
        return cls._intent_result(intent)

    @classmethod
    def capture(
        cls,
        provider_intent_id: str,
        idempotency_key: str | None = None,
    ) -> PaymentIntentResult:
        """
        Capture an authorized PaymentIntent.

        Raises:
            ProcessorRequestError: Intent is not capturable
            ProcessorUnavailable: Stripe unreachable
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "capture",
            "payment_intent_id": provider_intent_id,
            "idempotency_key": idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.capture(
                provider_intent_id,
                idempotency_key=idempotency_key,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        cls._log_completed(log_context, start_time, status=intent.status)
        return cls._intent_result(intent)

    @classmethod
    def cancel(
        cls,
        provider_intent_id: str,
        reason: str = "requested_by_customer",
    ) -> PaymentIntentResult:
        """
        Cancel (void) an uncaptured PaymentIntent.

        The returned status is "canceled" when the void took effect.
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "cancel",
            "payment_intent_id": provider_intent_id,
            "reason": reason,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.cancel(
                provider_intent_id,
                cancellation_reason=reason,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        cls._log_completed(log_context, start_time, status=intent.status)
        return cls._intent_result(intent)

    # =========================================================================
    # Refunds
    # =========================================================================

    @classmethod
    def refund(cls, params: RefundParams) -> RefundResult:
        """
        Refund a PaymentIntent.

        Reverses the destination transfer and the application fee
        proportionally by default, so the vendor and the platform each
        give back their share.

        Raises:
            ProcessorRequestError: Refund not possible
            ProcessorUnavailable: Stripe unreachable (retry with same key)
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "refund",
            "payment_intent_id": params.provider_intent_id,
            "amount_cents": params.amount_cents,
            "reason": params.reason,
            "idempotency_key": params.idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            refund = stripe.Refund.create(
                payment_intent=params.provider_intent_id,
                amount=params.amount_cents,
                reason=params.reason,
                reverse_transfer=params.reverse_transfer,
                refund_application_fee=params.refund_application_fee,
                idempotency_key=params.idempotency_key,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        cls._log_completed(
            log_context, start_time, refund_id=refund.id, status=refund.status
        )

        return RefundResult(
            id=refund.id,
            status=refund.status,
            amount_cents=refund.amount,
            payment_intent_id=_object_id(refund.payment_intent),
            raw_response=refund.to_dict(),
        )

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    @classmethod
    def verify_webhook(
        cls,
        payload: bytes,
        signature: str,
    ) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Args:
            payload: Raw webhook payload bytes
            signature: Stripe-Signature header value

        Returns:
            Parsed event data dict

        Raises:
            WebhookSignatureError: Invalid or missing signature
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                settings.STRIPE_WEBHOOK_SECRET,
            )
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(
                "Invalid webhook signature",
                provider_code="signature_verification_failed",
                details={"error": str(e)},
            ) from e
        except ValueError as e:
            raise WebhookSignatureError(
                "Invalid webhook payload",
                provider_code="invalid_payload",
                details={"error": str(e)},
            ) from e
        return event.to_dict()

    # =========================================================================
    # Result Mapping
    # =========================================================================

    @staticmethod
    def _account_result(account: Any) -> AccountResult:
        return AccountResult(
            id=account.id,
            charges_enabled=bool(account.charges_enabled),
            payouts_enabled=bool(account.payouts_enabled),
            details_submitted=bool(account.details_submitted),
            raw_response=account.to_dict(),
        )

    @staticmethod
    def _intent_result(intent: Any) -> PaymentIntentResult:
        return PaymentIntentResult(
            id=intent.id,
            status=intent.status,
            latest_charge=_object_id(intent.latest_charge),
            last_error=_error_message(intent.last_payment_error),
            client_secret=intent.client_secret,
            raw_response=intent.to_dict(),
        )

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to domain exceptions.

        Args:
            error: The Stripe exception
            log_context: Logging context dict
            duration_ms: Operation duration for logging

        Raises:
            ProcessorCardDeclined: Card was declined
            ProcessorRequestError: Invalid request or credentials
            ProcessorRateLimited: Rate limited
            ProcessorUnavailable: Connection failure, server error or unknown
        """
        logger = cls.get_logger()

        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            decline_code = getattr(error, "decline_code", None)
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": decline_code},
            )
            raise ProcessorCardDeclined(
                str(error.user_message or error),
                provider_code=error.code,
                decline_code=decline_code,
            ) from error

        elif isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise ProcessorRequestError(
                str(error.user_message or error),
                provider_code=error.code,
            ) from error

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise ProcessorRateLimited(
                "Stripe rate limit exceeded. Please retry.",
                provider_code="rate_limit",
            ) from error

        elif isinstance(error, stripe.APIConnectionError):
            logger.error(
                "Connection error to Stripe",
                extra=log_context,
                exc_info=True,
            )
            raise ProcessorUnavailable(
                "Could not connect to Stripe. Please retry.",
                provider_code="api_connection_error",
            ) from error

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise ProcessorRequestError(
                "Stripe authentication failed",
                provider_code="authentication_error",
            ) from error

        elif isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise ProcessorUnavailable(
                "Stripe service error. Please retry.",
                provider_code="api_error",
            ) from error

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise ProcessorUnavailable(
                f"Unexpected Stripe error: {error}",
                provider_code="unknown_error",
            ) from error
