"""
Refund model for tracking money returned to customers.

A Refund is created only by the refund decision engine, after the
processor accepted a full refund of an order's payment. At most one
Refund exists per (order_id, payment_intent) pair; the unique constraint
is what makes concurrent resolvers collapse into one record.

Usage:
    from payments.models import Refund
    from payments.state_machines import RefundStatus

    refund = Refund.objects.create(
        payment_intent=intent,
        order_id=intent.order_id,
        amount=intent.amount,
        reason="requested_by_customer",
        provider_refund_id="re_123",
    )

    # After the processor reports success (immediately or by webhook)
    refund.complete()  # pending -> completed
    refund.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import RefundStatus


class Refund(UUIDPrimaryKeyMixin, BaseModel):
    """
    Represents a full refund of an order's payment.

    State Flow:
        PENDING -> COMPLETED

    Fields:
        payment_intent: The PaymentIntent being refunded
        order_id: Order the payment belongs to (denormalized for lookups)
        amount: Refunded amount (major units), always the full intent amount
        reason: Processor refund reason
        status: Current FSM state
        provider_refund_id: Processor refund id (re_xxx)
        completed_at: When the processor confirmed the refund
    """

    payment_intent = models.ForeignKey(
        "payments.PaymentIntent",
        on_delete=models.PROTECT,
        related_name="refunds",
        help_text="Payment intent being refunded",
    )

    order_id = models.UUIDField(
        db_index=True,
        help_text="Order the refunded payment belongs to",
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Refunded amount",
    )

    reason = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Refund reason sent to the processor",
    )

    status = FSMField(
        default=RefundStatus.PENDING,
        choices=RefundStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the refund (managed by FSM)",
    )

    provider_refund_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Processor refund id (re_xxx)",
    )

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the refund completed",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Refund"
        verbose_name_plural = "Refunds"
        constraints = [
            models.UniqueConstraint(
                fields=["order_id", "payment_intent"],
                name="refund_unique_per_order_payment_intent",
            ),
        ]

    def __str__(self) -> str:
        return f"Refund({self.id}, {self.status}, {self.amount})"

    @property
    def is_completed(self) -> bool:
        return self.status == RefundStatus.COMPLETED

    @transition(
        field=status,
        source=RefundStatus.PENDING,
        target=RefundStatus.COMPLETED,
    )
    def complete(self):
        """
        Mark refund as completed.

        Transition: PENDING -> COMPLETED
        """
        self.completed_at = timezone.now()
