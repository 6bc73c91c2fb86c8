"""
Payment services for coordinating payment operations.

This module provides:
- VendorAccountService: Connected account onboarding and readiness
- CheckoutService: Split-payment checkout sessions
- PaymentIntentService: Direct create/confirm payment flow
- CaptureService: Captures authorized payments
- RefundDecisionService: Idempotent refund/void decisions
- ReconciliationService: Applies processor webhook updates

Usage:
    from payments.services import CheckoutRequest, CheckoutService

    session = CheckoutService.build_checkout_session(
        CheckoutRequest(
            order_id=order_id,
            amount=Decimal("25.00"),
            service_fee=Decimal("2.50"),
            vendor_owner_id=owner_id,
            success_url=success_url,
            cancel_url=cancel_url,
        )
    )

    # Refund an order
    from payments.services import RefundDecisionService

    decision = RefundDecisionService.resolve(order_id, reason="duplicate")
"""

from payments.services.base import ProcessorService
from payments.services.capture_service import CaptureService
from payments.services.checkout_service import (
    CheckoutRequest,
    CheckoutService,
    CheckoutSession,
)
from payments.services.payment_intent_service import PaymentIntentService
from payments.services.reconciliation_service import ReconciliationService
from payments.services.refund_decision_service import (
    RefundAction,
    RefundDecision,
    RefundDecisionService,
)
from payments.services.vendor_account_service import VendorAccountService

__all__ = [
    "CaptureService",
    "CheckoutRequest",
    "CheckoutService",
    "CheckoutSession",
    "PaymentIntentService",
    "ProcessorService",
    "ReconciliationService",
    "RefundAction",
    "RefundDecision",
    "RefundDecisionService",
    "VendorAccountService",
]
