"""
Payment domain models.

This module contains all payment-related models:
- VendorAccount: Processor connected account and onboarding state per vendor
- PaymentIntent: One processor payment attempt for an order
- Refund: Full refund of an order's payment
- WebhookEvent: Processor webhook tracking for idempotent processing
"""

from payments.models.payment_intent import PaymentIntent
from payments.models.refund import Refund
from payments.models.vendor_account import VendorAccount, derive_onboarding_status
from payments.models.webhook_event import MAX_WEBHOOK_RETRIES, WebhookEvent

__all__ = [
    "MAX_WEBHOOK_RETRIES",
    "PaymentIntent",
    "Refund",
    "VendorAccount",
    "WebhookEvent",
    "derive_onboarding_status",
]
