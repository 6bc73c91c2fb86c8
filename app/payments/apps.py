"""
Payments app configuration.

This app provides the payment orchestration engine:
- Vendor connected accounts and onboarding
- Split-payment checkout, capture and refund/void decisions
- Processor webhook ingestion and reconciliation
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
