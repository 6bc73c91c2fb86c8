"""
Payment adapters for external services.

All processor calls go through these adapters to keep error handling,
timeouts, idempotency and logging consistent. Services depend on the
ProcessorClient protocol; StripeAdapter is the production binding.

Usage:
    from payments.adapters import CheckoutSessionParams, StripeAdapter

    session = StripeAdapter.create_checkout_session(
        CheckoutSessionParams(
            order_id=order_id,
            amount_cents=2500,
            application_fee_cents=250,
            destination_account_id="acct_xxx",
            success_url=success_url,
            cancel_url=cancel_url,
        )
    )
"""

from payments.adapters.protocols import (
    AccountResult,
    CheckoutSessionParams,
    CheckoutSessionResult,
    PaymentIntentResult,
    ProcessorClient,
    RefundParams,
    RefundResult,
)
from payments.adapters.stripe_adapter import IdempotencyKeyGenerator, StripeAdapter

__all__ = [
    "AccountResult",
    "CheckoutSessionParams",
    "CheckoutSessionResult",
    "IdempotencyKeyGenerator",
    "PaymentIntentResult",
    "ProcessorClient",
    "RefundParams",
    "RefundResult",
    "StripeAdapter",
]
