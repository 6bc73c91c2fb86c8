"""
PaymentIntent model for per-order payment attempts.

A PaymentIntent is the local record of one processor payment attempt for
an order. Several may exist for the same order (retried checkout); the
engine always acts on the most recent one that has a provider intent id.

Usage:
    from payments.models import PaymentIntent
    from payments.state_machines import PaymentIntentStatus

    intent = PaymentIntent.objects.create(
        order_id=order_id,
        amount=Decimal("25.00"),
        service_fee=Decimal("2.50"),
        provider_intent_id="pi_123",
    )

    # State transitions using django-fsm
    intent.authorize()   # pending -> authorized
    intent.save()

    intent.capture()     # authorized -> captured
    intent.save()

    latest = PaymentIntent.objects.latest_for_order(order_id)
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from django_fsm import RETURN_VALUE, FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin

from payments.state_machines import (
    CAPTURABLE_STATUSES,
    REFUNDABLE_STATUSES,
    PaymentIntentStatus,
)

if TYPE_CHECKING:
    import uuid


class PaymentIntentQuerySet(models.QuerySet):
    """Lookups used by the capture, refund and reconciliation paths."""

    def for_order(self, order_id: uuid.UUID) -> PaymentIntentQuerySet:
        return self.filter(order_id=order_id)

    def with_provider_id(self) -> PaymentIntentQuerySet:
        return self.exclude(provider_intent_id__isnull=True).exclude(
            provider_intent_id=""
        )

    def newest_first(self) -> PaymentIntentQuerySet:
        # pk keeps the order deterministic on created_at ties
        return self.order_by("-created_at", "-pk")

    def latest_for_order(self, order_id: uuid.UUID) -> PaymentIntent | None:
        """Most recently created intent for the order with a provider id."""
        return self.for_order(order_id).with_provider_id().newest_first().first()

    def latest_capturable_for_order(self, order_id: uuid.UUID) -> PaymentIntent | None:
        """Most recently created intent for the order in pending/authorized."""
        return (
            self.for_order(order_id)
            .filter(status__in=CAPTURABLE_STATUSES)
            .newest_first()
            .first()
        )


class PaymentIntent(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    Local record of a processor payment attempt for an order.

    Uses django-fsm for status transitions and optimistic locking via
    the version field.

    State Flow:
        PENDING -> AUTHORIZED -> CAPTURED -> REFUNDED
        PENDING/AUTHORIZED -> CANCELLED
        PENDING/AUTHORIZED -> FAILED

    Processor-driven updates (webhooks) may set any status through
    apply_provider_status(); the processor is the source of truth.

    Fields:
        order_id: Order this payment belongs to
        amount: Total charged to the customer (major units)
        service_fee: Platform fee retained from amount (major units)
        currency: ISO 4217 code (upper case)
        provider: Processor name
        provider_intent_id: Processor intent id (pi_xxx)
        provider_transaction_id: Processor charge id (ch_xxx)
        failure_reason: Last processor failure, for operators
        authorized_at / captured_at: Transition timestamps
        version: Optimistic locking version
    """

    # ==========================================================================
    # Order & Amount
    # ==========================================================================

    order_id = models.UUIDField(
        db_index=True,
        help_text="Order this payment attempt belongs to",
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
        help_text="Total amount charged to the customer",
    )

    service_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Platform fee retained from the amount",
    )

    currency = models.CharField(
        max_length=3,
        default="USD",
        help_text="ISO 4217 currency code",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PaymentIntentStatus.PENDING,
        choices=PaymentIntentStatus.choices,
        db_index=True,
        protected=True,  # Prevent direct assignment outside transitions
        help_text="Current status of the payment (managed by FSM)",
    )

    # ==========================================================================
    # Processor Integration
    # ==========================================================================

    provider = models.CharField(
        max_length=50,
        default="Stripe",
        help_text="Payment processor name",
    )

    provider_intent_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Processor payment intent id (pi_xxx)",
    )

    provider_transaction_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Processor charge id (ch_xxx)",
    )

    failure_reason = models.TextField(
        null=True,
        blank=True,
        help_text="Last processor failure for this payment",
    )

    # ==========================================================================
    # State Timestamps
    # ==========================================================================

    authorized_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment was authorized",
    )

    captured_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment was captured",
    )

    objects = PaymentIntentQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Intent"
        verbose_name_plural = "Payment Intents"
        indexes = [
            models.Index(fields=["order_id", "created_at"], name="payments_pa_order_i_3f1c2a_idx"),
            models.Index(fields=["order_id", "status"], name="payments_pa_order_i_8b7d4e_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_intent_amount_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(service_fee__gte=0),
                name="payment_intent_service_fee_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"PaymentIntent({self.id}, {self.status}, {self.amount} {self.currency})"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_refundable(self) -> bool:
        return self.status in REFUNDABLE_STATUSES

    @property
    def is_capturable(self) -> bool:
        return self.status in CAPTURABLE_STATUSES

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PaymentIntentStatus.PENDING,
        target=PaymentIntentStatus.AUTHORIZED,
    )
    def authorize(self, provider_transaction_id: str | None = None):
        """
        Mark the payment as authorized.

        Transition: PENDING -> AUTHORIZED
        """
        self.authorized_at = timezone.now()
        if provider_transaction_id:
            self.provider_transaction_id = provider_transaction_id

    @transition(
        field=status,
        source=list(CAPTURABLE_STATUSES),
        target=PaymentIntentStatus.CAPTURED,
    )
    def capture(self):
        """
        Mark the payment as captured.

        Transition: PENDING/AUTHORIZED -> CAPTURED
        """
        self.captured_at = timezone.now()

    @transition(
        field=status,
        source=[
            PaymentIntentStatus.PENDING,
            PaymentIntentStatus.AUTHORIZED,
            PaymentIntentStatus.FAILED,
        ],
        target=PaymentIntentStatus.CANCELLED,
    )
    def cancel(self):
        """
        Void the payment before capture.

        Transition: PENDING/AUTHORIZED/FAILED -> CANCELLED
        """

    @transition(
        field=status,
        source=list(REFUNDABLE_STATUSES),
        target=PaymentIntentStatus.REFUNDED,
    )
    def refund(self):
        """
        Mark the payment as fully refunded.

        Transition: CAPTURED/AUTHORIZED -> REFUNDED
        """

    @transition(
        field=status,
        source=[PaymentIntentStatus.PENDING, PaymentIntentStatus.AUTHORIZED],
        target=PaymentIntentStatus.FAILED,
    )
    def fail(self, reason: str | None = None):
        """
        Mark the payment as failed.

        Transition: PENDING/AUTHORIZED -> FAILED
        """
        self.failure_reason = reason

    @transition(
        field=status,
        source="*",
        target=RETURN_VALUE(*PaymentIntentStatus.values),
    )
    def apply_provider_status(self, status: str, failure_reason: str | None = None):
        """
        Overwrite status with what the processor reported.

        Transition: any -> status

        Sets authorized_at when the new status is AUTHORIZED and
        captured_at when it is CAPTURED for the first time. Stores
        failure_reason when provided.
        """
        if status not in PaymentIntentStatus.values:
            raise ValueError(f"Unknown payment intent status: {status}")
        if status == PaymentIntentStatus.AUTHORIZED:
            self.authorized_at = timezone.now()
        if status == PaymentIntentStatus.CAPTURED and self.captured_at is None:
            self.captured_at = timezone.now()
        if failure_reason:
            self.failure_reason = failure_reason
        return status

    def record_failure(self, reason: str) -> None:
        """
        Store a processor failure without changing status.

        Does not save.
        """
        self.failure_reason = reason
