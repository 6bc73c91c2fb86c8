"""
Payments app: payment orchestration and settlement engine.

This app handles:
- Vendor connected-account onboarding and payment readiness
- Destination-charge checkout sessions with a platform fee
- Capture of authorized payments
- Idempotent refund/void decisions per order
- Processor webhook reconciliation
- Domain events (payment.authorized, payment.failed, refund.issued)

Related modules:
    - payments.adapters: Processor binding (Stripe)
    - payments.clients: Order and restaurant service clients
    - payments.services: Business operations

Usage:
    from payments.services import RefundDecisionService

    decision = RefundDecisionService.resolve(order_id, reason="duplicate")
"""
