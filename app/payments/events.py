"""
Domain events published to the platform event bus.

After a payment state transition commits, the matching event is sent to
a durable topic exchange so other services (orders, notifications) can
react. Publishing is fire-and-forget: a broker failure is logged and
never rolls back or fails the payment operation that triggered it.

Routing keys:
    payment.authorized - PaymentAuthorizedEvent
    payment.failed     - PaymentFailedEvent
    refund.issued      - RefundIssuedEvent

Usage:
    from payments.events import PaymentAuthorizedEvent, publish_on_commit

    with transaction.atomic():
        intent.authorize()
        intent.save()
        publish_on_commit(PaymentAuthorizedEvent.from_intent(intent))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, ClassVar

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from kombu import Connection, Exchange
from kombu.exceptions import KombuError

if TYPE_CHECKING:
    import uuid

    from payments.models import PaymentIntent, Refund

logger = logging.getLogger(__name__)


# =============================================================================
# Event Payloads
# =============================================================================


@dataclass
class DomainEvent:
    """Base class for bus events; subclasses set routing_key."""

    routing_key: ClassVar[str] = ""

    def to_message(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict."""
        message: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Decimal):
                value = str(value)
            elif value is not None and not isinstance(value, (str, int, bool)):
                value = str(value)
            message[f.name] = value
        return message


@dataclass
class PaymentAuthorizedEvent(DomainEvent):
    routing_key: ClassVar[str] = "payment.authorized"

    payment_intent_id: uuid.UUID
    order_id: uuid.UUID
    amount: Decimal
    provider: str
    provider_transaction_id: str | None
    authorized_at: datetime

    @classmethod
    def from_intent(cls, intent: PaymentIntent) -> PaymentAuthorizedEvent:
        return cls(
            payment_intent_id=intent.id,
            order_id=intent.order_id,
            amount=intent.amount,
            provider=intent.provider,
            provider_transaction_id=intent.provider_transaction_id,
            authorized_at=intent.authorized_at or timezone.now(),
        )


@dataclass
class PaymentFailedEvent(DomainEvent):
    routing_key: ClassVar[str] = "payment.failed"

    payment_intent_id: uuid.UUID
    order_id: uuid.UUID
    amount: Decimal
    provider: str
    failure_reason: str | None
    failed_at: datetime

    @classmethod
    def from_intent(cls, intent: PaymentIntent) -> PaymentFailedEvent:
        return cls(
            payment_intent_id=intent.id,
            order_id=intent.order_id,
            amount=intent.amount,
            provider=intent.provider,
            failure_reason=intent.failure_reason,
            failed_at=timezone.now(),
        )


@dataclass
class RefundIssuedEvent(DomainEvent):
    routing_key: ClassVar[str] = "refund.issued"

    refund_id: uuid.UUID
    order_id: uuid.UUID
    payment_intent_id: uuid.UUID
    amount: Decimal
    reason: str
    issued_at: datetime

    @classmethod
    def from_refund(cls, refund: Refund) -> RefundIssuedEvent:
        return cls(
            refund_id=refund.id,
            order_id=refund.order_id,
            payment_intent_id=refund.payment_intent_id,
            amount=refund.amount,
            reason=refund.reason,
            issued_at=refund.completed_at or timezone.now(),
        )


# =============================================================================
# Publisher
# =============================================================================


class EventPublisher:
    """
    Publishes domain events to a kombu topic exchange.

    A connection is opened per publish; events are rare relative to
    request volume and this keeps workers free of shared broker state.
    """

    @staticmethod
    def _exchange() -> Exchange:
        return Exchange(settings.EVENT_BUS_EXCHANGE, type="topic", durable=True)

    @classmethod
    def publish(cls, event: DomainEvent) -> bool:
        """
        Send an event to the bus.

        Returns:
            True if the broker accepted the message, False if publishing
            is disabled or failed (the failure is logged)
        """
        message = event.to_message()
        log_context = {"routing_key": event.routing_key, "event": message}

        if not settings.EVENT_BUS_ENABLED:
            logger.debug("Event bus disabled, dropping event", extra=log_context)
            return False

        exchange = cls._exchange()
        try:
            with Connection(settings.EVENT_BUS_URL, connect_timeout=5) as conn:
                producer = conn.Producer(serializer="json")
                producer.publish(
                    message,
                    exchange=exchange,
                    routing_key=event.routing_key,
                    declare=[exchange],
                    delivery_mode="persistent",
                    retry=True,
                    retry_policy={"max_retries": 3, "interval_start": 0.2},
                )
        except (KombuError, OSError):
            logger.exception("Failed to publish event", extra=log_context)
            return False

        logger.info(f"Published {event.routing_key} event", extra=log_context)
        return True


def publish_on_commit(event: DomainEvent) -> None:
    """Publish the event once the surrounding transaction commits."""
    transaction.on_commit(lambda: EventPublisher.publish(event))
