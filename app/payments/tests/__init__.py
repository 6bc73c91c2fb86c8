"""
Tests for payments app.

This package contains test modules for:
- test_models.py: VendorAccount, PaymentIntent, Refund, WebhookEvent models
- test_*_service.py: Service layer tests against an in-memory processor
- test_reconciliation.py: Webhook-driven state convergence
- test_views.py: API endpoint tests

Usage:
    pytest app/payments/tests/ -v
"""
