"""
State enums for payment models.

This module defines the state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

PaymentIntent States:
    pending → authorized → captured → refunded
    pending/authorized → captured (manual capture or processor webhook)
    pending/authorized → cancelled (void before capture)
    authorized → refunded (void through refund)
    any → failed (processor decline)
    any → any reported by the processor (webhook reconciliation)

Refund States:
    pending → completed

VendorAccount onboarding (derived, not a state machine):
    pending / restricted / complete

WebhookEvent States:
    pending → processing → processed
    pending → processing → failed (can retry)
"""

from django.db import models


class PaymentIntentStatus(models.TextChoices):
    """
    States for the PaymentIntent model lifecycle.

    Terminal states: CAPTURED (except for refund), REFUNDED, CANCELLED, FAILED

    State Flow (checkout with destination charge):
        PENDING → AUTHORIZED → CAPTURED → REFUNDED

    Void Flow:
        PENDING/AUTHORIZED → CANCELLED

    Failure Flow:
        PENDING/AUTHORIZED → FAILED
    """

    PENDING = "pending", "Pending"
    AUTHORIZED = "authorized", "Authorized"
    CAPTURED = "captured", "Captured"
    REFUNDED = "refunded", "Refunded"
    CANCELLED = "cancelled", "Cancelled"
    FAILED = "failed", "Failed"


class RefundStatus(models.TextChoices):
    """
    States for the Refund model lifecycle.

    State Flow:
        PENDING → COMPLETED

    A Pending refund is completed either immediately (processor reported
    success) or later by the refund webhook.
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"


class OnboardingStatus(models.TextChoices):
    """
    Connected-account onboarding status for VendorAccount.

    Derived from processor flags by derive_onboarding_status().
    Only COMPLETE allows a vendor to take payments.
    """

    PENDING = "pending", "Pending"
    RESTRICTED = "restricted", "Restricted"
    COMPLETE = "complete", "Complete"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → FAILED (can retry)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


# Statuses the Decision Engine may refund or void
REFUNDABLE_STATUSES = frozenset(
    [
        PaymentIntentStatus.CAPTURED,
        PaymentIntentStatus.AUTHORIZED,
    ]
)

# Statuses the Capture Manager may capture
CAPTURABLE_STATUSES = frozenset(
    [
        PaymentIntentStatus.PENDING,
        PaymentIntentStatus.AUTHORIZED,
    ]
)


__all__ = [
    "CAPTURABLE_STATUSES",
    "OnboardingStatus",
    "PaymentIntentStatus",
    "REFUNDABLE_STATUSES",
    "RefundStatus",
    "WebhookEventStatus",
]
