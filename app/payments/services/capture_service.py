"""
Capture manager.

Moves an authorized payment to captured. Most checkouts are captured by
the processor automatically; this path serves manual-capture setups, so
"nothing to capture" is a normal answer rather than an error.

Usage:
    from payments.services import CaptureService

    captured = CaptureService.capture_by_order_id(order_id)
    captured = CaptureService.capture_payment(payment_intent_id)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django_fsm import can_proceed

from payments.adapters import IdempotencyKeyGenerator
from payments.exceptions import ProcessorError
from payments.locks import lock_for_update
from payments.models import PaymentIntent
from payments.services.base import ProcessorService
from payments.state_machines import PaymentIntentStatus

if TYPE_CHECKING:
    import uuid


class CaptureService(ProcessorService):
    """
    Captures authorized payments at the processor.

    Processor failures are persisted on the PaymentIntent's
    failure_reason and reported as False.
    """

    @classmethod
    def capture_by_order_id(cls, order_id: uuid.UUID) -> bool:
        """
        Capture the most recent PENDING or AUTHORIZED intent for an order.

        Returns:
            True if captured, False if there was nothing to capture or
            the processor refused
        """
        intent = PaymentIntent.objects.latest_capturable_for_order(order_id)
        if intent is None:
            cls.get_logger().info(
                "No capturable payment intent for order",
                extra={"order_id": str(order_id)},
            )
            return False
        return cls._capture(intent)

    @classmethod
    def capture_payment(cls, payment_intent_id: uuid.UUID) -> bool:
        """
        Capture a specific payment intent.

        Returns:
            True if captured, False if unknown, not capturable, or the
            processor refused
        """
        intent = PaymentIntent.objects.filter(pk=payment_intent_id).first()
        if intent is None or not intent.is_capturable:
            cls.get_logger().info(
                "Payment intent not capturable",
                extra={
                    "payment_intent_id": str(payment_intent_id),
                    "status": intent.status if intent else None,
                },
            )
            return False
        return cls._capture(intent)

    @classmethod
    def _capture(cls, intent: PaymentIntent) -> bool:
        logger = cls.get_logger()
        log_context = {
            "order_id": str(intent.order_id),
            "payment_intent_id": str(intent.id),
            "provider_intent_id": intent.provider_intent_id,
        }

        if not intent.provider_intent_id:
            logger.warning("Payment intent has no processor id", extra=log_context)
            return False

        try:
            result = cls.get_processor().capture(
                intent.provider_intent_id,
                idempotency_key=IdempotencyKeyGenerator.generate(
                    "capture", intent.provider_intent_id
                ),
            )
        except ProcessorError as e:
            logger.error(f"Capture failed: {e.message}", extra=log_context)
            cls.record_intent_failure(intent.pk, e.message)
            return False

        if result.status != "succeeded":
            reason = result.last_error or f"Capture returned status '{result.status}'"
            logger.warning(reason, extra=log_context)
            cls.record_intent_failure(intent.pk, reason)
            return False

        with cls.atomic():
            locked = lock_for_update(PaymentIntent, intent.pk)
            if locked.status == PaymentIntentStatus.CAPTURED:
                return True
            if not can_proceed(locked.capture):
                # Cancelled or refunded while the capture call was in flight
                logger.warning(
                    f"Captured at processor but local status is {locked.status}",
                    extra=log_context,
                )
                return False
            locked.capture()
            if result.latest_charge:
                locked.provider_transaction_id = result.latest_charge
            locked.save()

        logger.info("Payment captured", extra=log_context)
        return True
