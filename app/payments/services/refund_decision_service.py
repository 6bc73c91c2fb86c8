"""
Refund/void decision engine.

Decides, safely and idempotently, whether an order's payment should be
refunded, and issues at most one effective refund per order however many
times it is asked.

Decision steps for resolve(order_id):
    1. Latest PaymentIntent with a processor id, else not_found
    2. Policy gate: the order service must report Completed or Cancelled.
       If it cannot be reached, continue on the payment's own status.
    3. Already REFUNDED -> already_refunded (no processor call)
    4. Only AUTHORIZED or CAPTURED payments are refundable
    5. Existing Refund row -> its state (no processor call)
    6. Processor refund with a key derived from (order, processor intent)
    7. Persist the Refund; a unique constraint rejects a racing duplicate

Every answer is a RefundDecision. Policy outcomes and processor failures
are reported through its action, never raised.

Usage:
    from payments.services import RefundAction, RefundDecisionService

    decision = RefundDecisionService.resolve(order_id, reason="requested_by_customer")
    if decision.action == RefundAction.REFUNDED:
        ...

    cancelled = RefundDecisionService.cancel_by_order_id(order_id)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum

from django.db import IntegrityError
from django_fsm import can_proceed

from payments.adapters import IdempotencyKeyGenerator, RefundParams
from payments.clients import OrderStatusClient
from payments.events import RefundIssuedEvent, publish_on_commit
from payments.exceptions import ProcessorError
from payments.locks import lock_for_update
from payments.models import PaymentIntent, Refund
from payments.money import normalize_refund_reason, to_minor_units
from payments.services.base import ProcessorService
from payments.state_machines import REFUNDABLE_STATUSES, PaymentIntentStatus

# Order lifecycle statuses that allow a refund (compared case-insensitively)
REFUNDABLE_ORDER_STATUSES = frozenset(["completed", "cancelled"])


class RefundAction(str, Enum):
    """Outcome of a refund decision."""

    NOT_FOUND = "not_found"
    NOT_REFUNDABLE = "not_refundable"
    ALREADY_REFUNDED = "already_refunded"
    REFUND_PENDING = "refund_pending"
    REFUNDED = "refunded"
    REFUND_FAILED = "refund_failed"
    VOIDED = "voided"


@dataclass
class RefundDecision:
    """
    Result of RefundDecisionService.resolve().

    Attributes:
        action: What happened (see RefundAction)
        refund_id: Local Refund id when one exists
        message: Human-readable explanation
    """

    action: RefundAction
    refund_id: uuid.UUID | None = None
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "refund_id": str(self.refund_id) if self.refund_id else None,
            "message": self.message,
        }


class RefundDecisionService(ProcessorService):
    """
    Idempotent refund/void state machine over PaymentIntent and Refund.

    No lock is held across the processor call. Duplicate effects are
    prevented by the deterministic refund idempotency key (processor
    side) and the Refund (order_id, payment_intent) unique constraint
    (local side).
    """

    @classmethod
    def refund_idempotency_key(cls, order_id: uuid.UUID, provider_intent_id: str) -> str:
        """Key shared by every refund attempt for one order and processor intent."""
        return IdempotencyKeyGenerator.generate(
            "refund_by_order", f"{order_id}_{provider_intent_id}"
        )

    @staticmethod
    def _existing_refund(order_id: uuid.UUID, intent: PaymentIntent) -> Refund | None:
        return (
            Refund.objects.filter(order_id=order_id, payment_intent=intent)
            .order_by("-created_at")
            .first()
        )

    @staticmethod
    def _decision_for_existing(refund: Refund) -> RefundDecision:
        action = RefundAction.REFUNDED if refund.is_completed else RefundAction.REFUND_PENDING
        return RefundDecision(
            action=action,
            refund_id=refund.id,
            message="Refund already exists for this order.",
        )

    @classmethod
    def resolve(cls, order_id: uuid.UUID, reason: str | None = None) -> RefundDecision:
        """
        Refund the order's payment if policy allows, at most once.

        Args:
            order_id: Order whose payment should be refunded
            reason: Free-form reason; normalized to a processor reason

        Returns:
            RefundDecision describing the outcome
        """
        logger = cls.get_logger()
        log_context = {"order_id": str(order_id)}

        intent = PaymentIntent.objects.latest_for_order(order_id)
        if intent is None:
            return RefundDecision(
                action=RefundAction.NOT_FOUND,
                message="No payment intent found for this order.",
            )
        log_context.update(
            payment_intent_id=str(intent.id),
            provider_intent_id=intent.provider_intent_id,
        )

        # Advisory policy gate; fail open only when the oracle is unreachable.
        # An answer without a status ("") is refused like any other status.
        order_status = OrderStatusClient.get_status(order_id)
        if order_status is None:
            logger.warning(
                "Order status unavailable; falling back to payment status policy",
                extra=log_context,
            )
        elif order_status.strip().lower() not in REFUNDABLE_ORDER_STATUSES:
            logger.info(
                f"Refund refused for order status '{order_status}'",
                extra=log_context,
            )
            return RefundDecision(
                action=RefundAction.NOT_REFUNDABLE,
                message="Refunds are allowed only for Completed or Cancelled orders.",
            )

        if intent.status == PaymentIntentStatus.REFUNDED:
            existing = cls._existing_refund(order_id, intent)
            return RefundDecision(
                action=RefundAction.ALREADY_REFUNDED,
                refund_id=existing.id if existing else None,
                message="Payment is already refunded.",
            )

        if intent.status not in REFUNDABLE_STATUSES:
            return RefundDecision(
                action=RefundAction.NOT_REFUNDABLE,
                message=(
                    "Refund not applicable because payment is not captured "
                    f"(status '{intent.status}')."
                ),
            )

        existing = cls._existing_refund(order_id, intent)
        if existing is not None:
            return cls._decision_for_existing(existing)

        normalized_reason = normalize_refund_reason(reason)
        try:
            result = cls.get_processor().refund(
                RefundParams(
                    provider_intent_id=intent.provider_intent_id,
                    amount_cents=to_minor_units(intent.amount),
                    reason=normalized_reason,
                    idempotency_key=cls.refund_idempotency_key(
                        order_id, intent.provider_intent_id
                    ),
                )
            )
        except ProcessorError as e:
            logger.warning(f"Processor refund failed: {e.message}", extra=log_context)
            cls.record_intent_failure(intent.pk, e.message)
            return RefundDecision(action=RefundAction.REFUND_FAILED, message=e.message)

        try:
            refund = cls._persist_refund(intent.pk, order_id, normalized_reason, result)
        except IntegrityError:
            # A concurrent resolve inserted first; report its refund
            winner = cls._existing_refund(order_id, intent)
            if winner is None:
                raise
            logger.info("Concurrent refund detected; returning existing", extra=log_context)
            return cls._decision_for_existing(winner)

        logger.info(
            f"Refund created with status {refund.status}",
            extra={**log_context, "refund_id": str(refund.id), "provider_refund_id": result.id},
        )
        return RefundDecision(
            action=RefundAction.REFUNDED if refund.is_completed else RefundAction.REFUND_PENDING,
            refund_id=refund.id,
            message="Refund created.",
        )

    @classmethod
    def _persist_refund(cls, intent_pk, order_id, reason, result) -> Refund:
        with cls.atomic():
            intent = lock_for_update(PaymentIntent, intent_pk)
            refund = Refund.objects.create(
                payment_intent=intent,
                order_id=order_id,
                amount=intent.amount,
                reason=reason,
                provider_refund_id=result.id,
            )
            if result.succeeded:
                refund.complete()
                refund.save()
                if can_proceed(intent.refund):
                    intent.refund()
                    intent.save()
                publish_on_commit(RefundIssuedEvent.from_refund(refund))
        return refund

    @classmethod
    def cancel_by_order_id(cls, order_id: uuid.UUID) -> bool:
        """
        Void the order's uncaptured payment.

        Returns:
            True if the payment is (now or already) cancelled; False when
            there is no payment, it was already captured or refunded, or
            the processor did not cancel it
        """
        logger = cls.get_logger()
        intent = PaymentIntent.objects.latest_for_order(order_id)
        if intent is None:
            return False

        log_context = {
            "order_id": str(order_id),
            "payment_intent_id": str(intent.id),
            "provider_intent_id": intent.provider_intent_id,
        }

        if intent.status in (PaymentIntentStatus.CAPTURED, PaymentIntentStatus.REFUNDED):
            logger.info(f"Cancel refused: payment is {intent.status}", extra=log_context)
            return False
        if intent.status == PaymentIntentStatus.CANCELLED:
            return True

        try:
            result = cls.get_processor().cancel(intent.provider_intent_id)
        except ProcessorError as e:
            logger.warning(f"Processor cancel failed: {e.message}", extra=log_context)
            cls.record_intent_failure(intent.pk, e.message)
            return False

        if result.status != "canceled":
            reason = f"Cancel returned status '{result.status}'"
            logger.warning(reason, extra=log_context)
            cls.record_intent_failure(intent.pk, reason)
            return False

        with cls.atomic():
            locked = lock_for_update(PaymentIntent, intent.pk)
            if locked.status == PaymentIntentStatus.CANCELLED:
                return True
            if not can_proceed(locked.cancel):
                logger.warning(
                    f"Cancelled at processor but local status is {locked.status}",
                    extra=log_context,
                )
                return False
            locked.cancel()
            locked.save()

        logger.info("Payment cancelled", extra=log_context)
        return True
