"""
Pytest fixtures for payment tests.

This module provides fixtures for creating payment-related test data
and for swapping the processor binding with an in-memory fake.

Usage:
    def test_capture(processor, authorized_intent):
        assert CaptureService.capture_payment(authorized_intent.id) is True
        assert processor.calls_to("capture")
"""

from unittest.mock import patch

import pytest

from payments.services import ProcessorService
from payments.state_machines import PaymentIntentStatus
from payments.tests.factories import PaymentIntentFactory, VendorAccountFactory
from payments.tests.fakes import FakeProcessor


# =============================================================================
# Processor Fixtures
# =============================================================================


@pytest.fixture
def processor():
    """Install a FakeProcessor for every processor-backed service."""
    fake = FakeProcessor()
    ProcessorService.set_processor(fake)
    yield fake
    ProcessorService.set_processor(None)


@pytest.fixture
def published_events():
    """Capture events handed to the publisher instead of sending them."""
    events = []
    with patch(
        "payments.events.EventPublisher.publish",
        side_effect=lambda event: events.append(event) or True,
    ):
        yield events


@pytest.fixture
def order_status():
    """Patch the order status oracle; set .return_value per test."""
    with patch(
        "payments.services.refund_decision_service.OrderStatusClient.get_status",
        return_value="Completed",
    ) as mock_get_status:
        yield mock_get_status


# =============================================================================
# Vendor Account Fixtures
# =============================================================================


@pytest.fixture
def ready_vendor(db):
    """Vendor with a connected account and COMPLETE onboarding."""
    return VendorAccountFactory()


# =============================================================================
# PaymentIntent Status Fixtures
# =============================================================================


@pytest.fixture
def pending_intent(db):
    return PaymentIntentFactory()


@pytest.fixture
def authorized_intent(db):
    return PaymentIntentFactory(status=PaymentIntentStatus.AUTHORIZED)


@pytest.fixture
def captured_intent(db):
    return PaymentIntentFactory(status=PaymentIntentStatus.CAPTURED)


@pytest.fixture
def refunded_intent(db):
    return PaymentIntentFactory(status=PaymentIntentStatus.REFUNDED)


@pytest.fixture
def cancelled_intent(db):
    return PaymentIntentFactory(status=PaymentIntentStatus.CANCELLED)
