"""
Direct payment intent flow (create, then confirm with a payment method).

Used by clients that collect a payment method themselves instead of the
hosted checkout page.

Usage:
    from payments.services import PaymentIntentService

    intent = PaymentIntentService.create_payment_intent(order_id, Decimal("25.00"))
    authorized = PaymentIntentService.authorize_payment(intent.id, "pm_card_visa")
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django_fsm import can_proceed

from core.exceptions import NotFoundError, ValidationError

from payments.adapters import IdempotencyKeyGenerator
from payments.events import (
    PaymentAuthorizedEvent,
    PaymentFailedEvent,
    publish_on_commit,
)
from payments.exceptions import ProcessorError
from payments.locks import lock_for_update
from payments.models import PaymentIntent
from payments.money import to_minor_units
from payments.services.base import ProcessorService
from payments.state_machines import PaymentIntentStatus

# Processor statuses meaning the funds are secured
AUTHORIZED_PROVIDER_STATUSES = frozenset(["succeeded", "requires_capture"])


class PaymentIntentService(ProcessorService):
    """Creates and confirms processor payment intents."""

    @classmethod
    def create_payment_intent(
        cls,
        order_id: uuid.UUID,
        amount: Decimal,
        currency: str = "USD",
    ) -> PaymentIntent:
        """
        Create a processor intent and persist it as PENDING.

        The local id is chosen up front so it can travel in the
        processor metadata.

        Raises:
            ValidationError: Amount is not positive
            ProcessorError: Processor call failed (nothing persisted)
        """
        amount_cents = to_minor_units(amount)
        if amount_cents <= 0:
            raise ValidationError(
                "Amount must be greater than zero",
                error_code="INVALID_AMOUNT",
            )

        local_id = uuid.uuid4()
        result = cls.get_processor().create_payment_intent(
            amount_cents,
            currency.lower(),
            metadata={"OrderId": str(order_id), "PaymentIntentId": str(local_id)},
            idempotency_key=IdempotencyKeyGenerator.generate("create_intent", local_id),
        )

        intent = PaymentIntent.objects.create(
            id=local_id,
            order_id=order_id,
            amount=amount,
            currency=currency.upper(),
            provider_intent_id=result.id,
        )

        cls.get_logger().info(
            "Payment intent created",
            extra={
                "order_id": str(order_id),
                "payment_intent_id": str(intent.id),
                "provider_intent_id": result.id,
            },
        )
        return intent

    @classmethod
    def authorize_payment(
        cls,
        payment_intent_id: uuid.UUID,
        payment_method_id: str,
    ) -> bool:
        """
        Confirm the intent with a payment method.

        A secured payment moves the intent to AUTHORIZED and publishes
        payment.authorized. A declined or incomplete one moves it to
        FAILED and publishes payment.failed.

        Returns:
            True if the payment was authorized

        Raises:
            NotFoundError: Unknown payment intent
            ValidationError: Intent has no processor id
            ProcessorUnavailable: Processor unreachable (state unchanged)
        """
        logger = cls.get_logger()
        intent = PaymentIntent.objects.filter(pk=payment_intent_id).first()
        if intent is None:
            raise NotFoundError(
                f"Payment intent {payment_intent_id} not found",
                error_code="PAYMENT_INTENT_NOT_FOUND",
            )
        if not intent.provider_intent_id:
            raise ValidationError(
                "Payment intent has no processor id",
                error_code="PAYMENT_INTENT_NOT_LINKED",
            )

        log_context = {
            "order_id": str(intent.order_id),
            "payment_intent_id": str(intent.id),
            "provider_intent_id": intent.provider_intent_id,
        }

        try:
            result = cls.get_processor().confirm_payment_intent(
                intent.provider_intent_id, payment_method_id
            )
        except ProcessorError as e:
            if e.is_retryable:
                raise
            logger.warning(f"Payment confirmation rejected: {e.message}", extra=log_context)
            return cls._mark_failed(intent.pk, e.message)

        if result.status not in AUTHORIZED_PROVIDER_STATUSES:
            reason = result.last_error or f"Payment status: {result.status}"
            return cls._mark_failed(intent.pk, reason)

        with cls.atomic():
            locked = lock_for_update(PaymentIntent, intent.pk)
            if can_proceed(locked.authorize):
                locked.authorize(provider_transaction_id=result.latest_charge)
                locked.save()
                publish_on_commit(PaymentAuthorizedEvent.from_intent(locked))
            else:
                logger.info(
                    f"Payment intent already {locked.status}; authorization not re-applied",
                    extra=log_context,
                )

        logger.info("Payment authorized", extra=log_context)
        return locked.status in (
            PaymentIntentStatus.AUTHORIZED,
            PaymentIntentStatus.CAPTURED,
        )

    @classmethod
    def _mark_failed(cls, pk: uuid.UUID, reason: str) -> bool:
        with cls.atomic():
            locked = lock_for_update(PaymentIntent, pk)
            if can_proceed(locked.fail):
                locked.fail(reason)
                locked.save()
                publish_on_commit(PaymentFailedEvent.from_intent(locked))
            else:
                locked.record_failure(reason)
                locked.save(update_fields=["failure_reason", "updated_at"])
        return False
