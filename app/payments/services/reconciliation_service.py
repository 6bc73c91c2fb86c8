"""
Webhook reconciliation service.

Applies asynchronous processor updates to local payment state. This path
races with the decision engine and the capture manager; every update
re-reads the row under a lock and checks its precondition right before
writing, so interleavings converge instead of overwriting each other.

Usage:
    from payments.services import ReconciliationService

    ReconciliationService.apply_provider_update("pi_123", PaymentIntentStatus.AUTHORIZED)

    ReconciliationService.complete_refund(
        provider_refund_id="re_123",
        provider_status="succeeded",
    )
"""

from __future__ import annotations

from django_fsm import can_proceed

from core.services import BaseService

from payments.events import (
    PaymentAuthorizedEvent,
    PaymentFailedEvent,
    RefundIssuedEvent,
    publish_on_commit,
)
from payments.locks import lock_for_update
from payments.models import PaymentIntent, Refund
from payments.state_machines import PaymentIntentStatus, RefundStatus

# Refund statuses reported by the processor that end the refund unsuccessfully
FAILED_REFUND_STATUSES = frozenset(["failed", "canceled"])


class ReconciliationService(BaseService):
    """
    Converges local PaymentIntent and Refund rows with processor state.

    Missing local records are logged and discarded: they indicate a data
    problem, not a condition a retry would fix.
    """

    @classmethod
    def apply_provider_update(
        cls,
        provider_intent_id: str,
        status: str,
        failure_reason: str | None = None,
    ) -> PaymentIntent | None:
        """
        Overwrite a PaymentIntent's status with what the processor reported.

        Sets authorized_at on a move to AUTHORIZED and stores
        failure_reason when given. A repeated update with nothing new is
        a no-op. A REFUNDED intent is never moved back: the processor
        keeps reporting the original charge status after a refund.

        Returns:
            The updated PaymentIntent, or None if there is no local record
        """
        logger = cls.get_logger()
        log_context = {"provider_intent_id": provider_intent_id, "status": status}

        intent = PaymentIntent.objects.filter(provider_intent_id=provider_intent_id).first()
        if intent is None:
            logger.warning(
                "No local payment intent for processor update; discarding",
                extra=log_context,
            )
            return None

        with cls.atomic():
            locked = lock_for_update(PaymentIntent, intent.pk)
            previous = locked.status

            if previous == status and not failure_reason:
                return locked
            if (
                previous == PaymentIntentStatus.REFUNDED
                and status != PaymentIntentStatus.REFUNDED
            ):
                logger.info(
                    "Ignoring processor update for refunded payment",
                    extra=log_context,
                )
                return locked

            locked.apply_provider_status(status, failure_reason=failure_reason)
            locked.save()

            if previous != status:
                if status == PaymentIntentStatus.AUTHORIZED:
                    publish_on_commit(PaymentAuthorizedEvent.from_intent(locked))
                elif status == PaymentIntentStatus.FAILED:
                    publish_on_commit(PaymentFailedEvent.from_intent(locked))

        logger.info(
            f"Payment intent reconciled {previous} -> {status}",
            extra={**log_context, "payment_intent_id": str(locked.id)},
        )
        return locked

    @classmethod
    def _find_refund(
        cls,
        provider_refund_id: str | None,
        provider_intent_id: str | None,
    ) -> Refund | None:
        if provider_refund_id:
            refund = Refund.objects.filter(provider_refund_id=provider_refund_id).first()
            if refund is not None:
                return refund
        if provider_intent_id:
            return (
                Refund.objects.filter(
                    payment_intent__provider_intent_id=provider_intent_id,
                    status=RefundStatus.PENDING,
                )
                .order_by("-created_at")
                .first()
            )
        return None

    @classmethod
    def complete_refund(
        cls,
        provider_refund_id: str | None = None,
        provider_intent_id: str | None = None,
        provider_status: str = "succeeded",
    ) -> Refund | None:
        """
        Apply a processor refund outcome to a PENDING Refund.

        On success the Refund is COMPLETED, its PaymentIntent REFUNDED,
        and refund.issued is published. On failure the reason is stored
        on the PaymentIntent and the Refund stays PENDING for operators.

        Returns:
            The Refund, or None if no local refund matches (yet)
        """
        logger = cls.get_logger()
        log_context = {
            "provider_refund_id": provider_refund_id,
            "provider_intent_id": provider_intent_id,
            "provider_status": provider_status,
        }

        refund = cls._find_refund(provider_refund_id, provider_intent_id)
        if refund is None:
            logger.warning("No local refund for processor update", extra=log_context)
            return None

        with cls.atomic():
            locked_refund = lock_for_update(Refund, refund.pk)
            intent = lock_for_update(PaymentIntent, locked_refund.payment_intent_id)

            if provider_status in FAILED_REFUND_STATUSES:
                intent.record_failure(f"Refund {provider_status} at processor")
                intent.save(update_fields=["failure_reason", "updated_at"])
                logger.warning("Processor reported refund failure", extra=log_context)
                return locked_refund

            if provider_status != "succeeded":
                return locked_refund

            if not can_proceed(locked_refund.complete):
                return locked_refund

            locked_refund.complete()
            locked_refund.save()
            if can_proceed(intent.refund):
                intent.refund()
                intent.save()
            publish_on_commit(RefundIssuedEvent.from_refund(locked_refund))

        logger.info(
            "Refund completed by processor",
            extra={**log_context, "refund_id": str(locked_refund.id)},
        )
        return locked_refund
