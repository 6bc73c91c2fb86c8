"""
State machine enums and helpers for payment models.

This module defines the state enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    CAPTURABLE_STATUSES,
    REFUNDABLE_STATUSES,
    OnboardingStatus,
    PaymentIntentStatus,
    RefundStatus,
    WebhookEventStatus,
)

__all__ = [
    "CAPTURABLE_STATUSES",
    "OnboardingStatus",
    "PaymentIntentStatus",
    "REFUNDABLE_STATUSES",
    "RefundStatus",
    "WebhookEventStatus",
]
