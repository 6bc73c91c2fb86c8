"""
Shared base for services that talk to the payment processor.
"""

from __future__ import annotations

import uuid

from core.services import BaseService

from payments.adapters import ProcessorClient, StripeAdapter
from payments.locks import lock_for_update
from payments.models import PaymentIntent


class ProcessorService(BaseService):
    """
    BaseService with an injectable processor binding.

    Defaults to StripeAdapter. Tests inject a fake implementing
    ProcessorClient with set_processor() and reset it with
    set_processor(None).
    """

    # Processor binding - can be injected for testing
    _processor: ProcessorClient | None = None

    @classmethod
    def get_processor(cls) -> ProcessorClient:
        """Get the processor binding."""
        return cls._processor or StripeAdapter

    @classmethod
    def set_processor(cls, processor: ProcessorClient | None) -> None:
        """Set the processor binding (for testing)."""
        cls._processor = processor

    @classmethod
    def record_intent_failure(cls, payment_intent_pk: uuid.UUID, reason: str) -> None:
        """
        Persist a processor failure on a PaymentIntent without changing status.

        Uses its own short transaction so the reason survives even when the
        caller returns a structured failure instead of raising.
        """
        with cls.atomic():
            intent = lock_for_update(PaymentIntent, payment_intent_pk)
            intent.record_failure(reason)
            intent.save(update_fields=["failure_reason", "updated_at"])
