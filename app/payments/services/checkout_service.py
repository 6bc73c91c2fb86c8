"""
Checkout session builder.

Creates a destination-charge checkout session for an order: the customer
is charged the full amount, the platform keeps the service fee and the
rest is transferred to the vendor's connected account. The processor's
intent id is persisted as a PENDING PaymentIntent.

Usage:
    from payments.services import CheckoutRequest, CheckoutService

    session = CheckoutService.build_checkout_session(
        CheckoutRequest(
            order_id=order_id,
            amount=Decimal("25.00"),
            service_fee=Decimal("2.50"),
            vendor_owner_id=owner_id,
            success_url="https://app.example.com/orders/123?paid=1",
            cancel_url="https://app.example.com/cart",
        )
    )
    return redirect(session.url)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings

from core.exceptions import ValidationError

from payments.adapters import CheckoutSessionParams, IdempotencyKeyGenerator
from payments.exceptions import ProcessorError, VendorNotReady
from payments.models import PaymentIntent
from payments.money import to_minor_units
from payments.services.base import ProcessorService
from payments.services.vendor_account_service import VendorAccountService

if TYPE_CHECKING:
    import uuid


@dataclass
class CheckoutRequest:
    """
    Input for building a checkout session.

    Attributes:
        order_id: Order being paid
        amount: Total charged to the customer (major units)
        service_fee: Platform fee retained from amount (major units)
        vendor_owner_id: User id of the vendor receiving the payment
        success_url / cancel_url: Customer redirect targets
    """

    order_id: uuid.UUID
    amount: Decimal
    service_fee: Decimal
    vendor_owner_id: uuid.UUID
    success_url: str
    cancel_url: str


@dataclass
class CheckoutSession:
    """
    A created checkout session.

    Attributes:
        url: Hosted checkout URL for the customer
        session_id: Processor session id
        payment_intent: Local PENDING record, None when the processor
            returned no intent id
    """

    url: str
    session_id: str
    payment_intent: PaymentIntent | None


class CheckoutService(ProcessorService):
    """
    Builds split-payment checkout sessions.

    Failure modes:
        VendorNotReady: vendor has no account or incomplete onboarding;
            nothing is sent to the processor
        ProcessorUnavailable: transport failure; no PaymentIntent is
            persisted, so the caller may retry
    """

    @staticmethod
    def _validate_amounts(request: CheckoutRequest) -> tuple[int, int]:
        amount_cents = to_minor_units(request.amount)
        fee_cents = to_minor_units(request.service_fee)
        if amount_cents <= 0:
            raise ValidationError(
                "Amount must be greater than zero",
                error_code="INVALID_AMOUNT",
            )
        if fee_cents > amount_cents:
            raise ValidationError(
                "Service fee cannot exceed the amount",
                error_code="INVALID_SERVICE_FEE",
            )
        return amount_cents, fee_cents

    @classmethod
    def build_checkout_session(cls, request: CheckoutRequest) -> CheckoutSession:
        """
        Create a checkout session and persist the PENDING PaymentIntent.

        Raises:
            ValidationError: Amounts do not convert to valid minor units
            VendorNotReady: Vendor cannot take payments
            ProcessorError: Processor call failed or returned no URL
        """
        logger = cls.get_logger()
        log_context = {
            "order_id": str(request.order_id),
            "vendor_owner_id": str(request.vendor_owner_id),
        }

        amount_cents, fee_cents = cls._validate_amounts(request)

        account = VendorAccountService.get_ready_account(request.vendor_owner_id)
        if account is None:
            logger.info("Checkout refused: vendor not ready", extra=log_context)
            raise VendorNotReady(
                "Vendor has not completed payment onboarding",
                details={"vendor_owner_id": str(request.vendor_owner_id)},
            )

        # A new attempt number per checkout keeps expired sessions from
        # being replayed by the processor's idempotency cache
        attempt = PaymentIntent.objects.for_order(request.order_id).count() + 1
        params = CheckoutSessionParams(
            order_id=request.order_id,
            amount_cents=amount_cents,
            application_fee_cents=fee_cents,
            destination_account_id=account.provider_account_id,
            success_url=request.success_url,
            cancel_url=request.cancel_url,
            currency=settings.PAYMENT_CURRENCY,
            idempotency_key=IdempotencyKeyGenerator.generate(
                "checkout_session", request.order_id, attempt
            ),
        )

        session = cls.get_processor().create_checkout_session(params)

        if not session.url:
            logger.error(
                "Processor returned a checkout session without a URL",
                extra={**log_context, "session_id": session.id},
            )
            raise ProcessorError(
                "Processor returned no checkout URL",
                details={"session_id": session.id},
            )

        intent = None
        if session.payment_intent_id:
            intent, _ = PaymentIntent.objects.get_or_create(
                provider_intent_id=session.payment_intent_id,
                defaults={
                    "order_id": request.order_id,
                    "amount": request.amount,
                    "service_fee": request.service_fee,
                    "currency": settings.PAYMENT_CURRENCY.upper(),
                },
            )
        else:
            logger.warning(
                "Checkout session has no payment intent id; nothing persisted",
                extra={**log_context, "session_id": session.id},
            )

        logger.info(
            "Checkout session created",
            extra={
                **log_context,
                "session_id": session.id,
                "provider_intent_id": session.payment_intent_id,
                "amount_cents": amount_cents,
                "application_fee_cents": fee_cents,
            },
        )

        return CheckoutSession(
            url=session.url,
            session_id=session.id,
            payment_intent=intent,
        )
