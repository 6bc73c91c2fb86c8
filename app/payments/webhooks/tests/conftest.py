"""
Pytest fixtures for webhook tests.

Provides fixtures for testing webhook views, handlers, and tasks including
processor event payloads and WebhookEvent objects in each status.
"""

import pytest

from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.tests.conftest import (  # noqa: F401
    authorized_intent,
    captured_intent,
    order_status,
    pending_intent,
    processor,
)
from payments.tests.factories import event_payload


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def webhook_secret(settings):
    settings.STRIPE_WEBHOOK_SECRET = "whsec_test_secret"


# =============================================================================
# WebhookEvent Fixtures
# =============================================================================


@pytest.fixture
def pending_webhook_event(db):
    """Create a pending webhook event."""
    return WebhookEvent.objects.create(
        provider_event_id="evt_test_pending_123",
        event_type="payment_intent.succeeded",
        payload=event_payload(
            "payment_intent.succeeded",
            {"id": "pi_test_webhook_123", "object": "payment_intent"},
            event_id="evt_test_pending_123",
        ),
    )


@pytest.fixture
def processed_webhook_event(db):
    """Create an already processed webhook event."""
    event = WebhookEvent.objects.create(
        provider_event_id="evt_test_processed_123",
        event_type="payment_intent.succeeded",
        payload=event_payload(
            "payment_intent.succeeded",
            {"id": "pi_test_processed_123"},
            event_id="evt_test_processed_123",
        ),
        retry_count=1,
    )
    event.mark_processed()
    event.save()
    return event


@pytest.fixture
def failed_webhook_event(db):
    """Create a failed webhook event eligible for retry."""
    return WebhookEvent.objects.create(
        provider_event_id="evt_test_failed_123",
        event_type="payment_intent.succeeded",
        payload=event_payload(
            "payment_intent.succeeded",
            {"id": "pi_test_failed_123"},
            event_id="evt_test_failed_123",
        ),
        status=WebhookEventStatus.FAILED,
        error_message="Previous failure",
        retry_count=1,
    )
