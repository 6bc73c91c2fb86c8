"""
Webhook event handlers for processor events.

This module provides a handler registry and implementations for
processing the processor webhook events the engine reconciles.

Handled events:
    account.updated               -> refresh vendor onboarding status
    payment_intent.succeeded      -> AUTHORIZED
    payment_intent.payment_failed -> FAILED with last_payment_error.message
    payment_intent.canceled       -> CANCELLED
    refund.updated                -> complete the PENDING Refund
    charge.refunded               -> complete the PENDING Refund

Any other event type is acknowledged and ignored. A refund event that
matches no local Refund fails so it is retried: the refund row is written
only after the processor call returns, and the webhook can arrive first.

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    # Register a custom handler
    @register_handler("custom.event")
    def handle_custom_event(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    # Dispatch an event to its handler
    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import Callable

from core.services import ServiceResult

from payments.models import WebhookEvent
from payments.services import ReconciliationService, VendorAccountService
from payments.state_machines import PaymentIntentStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(event_type: str) -> Callable:
    """
    Decorator to register a webhook event handler.

    Usage:
        @register_handler("payment_intent.succeeded")
        def handle_payment_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
            ...

    Args:
        event_type: The processor event type (e.g., "payment_intent.succeeded")

    Returns:
        Decorator function that registers the handler
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to the appropriate handler.

    If no handler is registered, logs and returns success so unknown
    events are acknowledged rather than retried.

    Returns:
        ServiceResult from the handler, or success if no handler
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"provider_event_id": webhook_event.provider_event_id},
        )
        return ServiceResult.success(None)

    logger.info(
        f"Dispatching {webhook_event.event_type} to handler",
        extra={"provider_event_id": webhook_event.provider_event_id},
    )

    return handler(webhook_event)


def _missing_object_id(webhook_event: WebhookEvent) -> ServiceResult:
    logger.error(
        f"{webhook_event.event_type}: could not extract object id",
        extra={"provider_event_id": webhook_event.provider_event_id},
    )
    return ServiceResult.failure(
        "Could not extract object id from webhook",
        error_code="INVALID_WEBHOOK_PAYLOAD",
    )


def _refund_not_found(webhook_event: WebhookEvent) -> ServiceResult:
    logger.warning(
        f"{webhook_event.event_type}: no local refund yet; will retry",
        extra={"provider_event_id": webhook_event.provider_event_id},
    )
    return ServiceResult.failure(
        "No local refund matches this processor refund",
        error_code="REFUND_NOT_FOUND",
    )


# =============================================================================
# Connected Account Handlers
# =============================================================================


@register_handler("account.updated")
def handle_account_updated(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Refresh a vendor's onboarding status from the processor.

    An account with no local VendorAccount is logged and acknowledged.
    """
    account_id = webhook_event.get_object_id()
    if not account_id:
        return _missing_object_id(webhook_event)

    account = VendorAccountService.refresh_onboarding_status(account_id)
    return ServiceResult.success(account)


# =============================================================================
# Payment Intent Handlers
# =============================================================================


def _apply_intent_status(
    webhook_event: WebhookEvent,
    status: str,
    failure_reason: str | None = None,
) -> ServiceResult:
    provider_intent_id = webhook_event.get_object_id()
    if not provider_intent_id:
        return _missing_object_id(webhook_event)

    intent = ReconciliationService.apply_provider_update(
        provider_intent_id, status, failure_reason=failure_reason
    )
    # A missing local record is a data problem; retrying will not help
    return ServiceResult.success(intent)


@register_handler("payment_intent.succeeded")
def handle_payment_intent_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
    return _apply_intent_status(webhook_event, PaymentIntentStatus.AUTHORIZED)


@register_handler("payment_intent.payment_failed")
def handle_payment_intent_failed(webhook_event: WebhookEvent) -> ServiceResult:
    """Mark the intent FAILED with the processor's last error message."""
    last_error = webhook_event.get_object().get("last_payment_error") or {}
    reason = last_error.get("message") or "Payment failed"
    return _apply_intent_status(
        webhook_event, PaymentIntentStatus.FAILED, failure_reason=reason
    )


@register_handler("payment_intent.canceled")
def handle_payment_intent_canceled(webhook_event: WebhookEvent) -> ServiceResult:
    return _apply_intent_status(webhook_event, PaymentIntentStatus.CANCELLED)


# =============================================================================
# Refund Handlers
# =============================================================================


@register_handler("refund.updated")
def handle_refund_updated(webhook_event: WebhookEvent) -> ServiceResult:
    """Apply a refund object's status to the matching local Refund."""
    refund_object = webhook_event.get_object()
    provider_refund_id = refund_object.get("id")
    if not provider_refund_id:
        return _missing_object_id(webhook_event)

    refund = ReconciliationService.complete_refund(
        provider_refund_id=provider_refund_id,
        provider_intent_id=refund_object.get("payment_intent"),
        provider_status=refund_object.get("status") or "",
    )
    if refund is None:
        return _refund_not_found(webhook_event)
    return ServiceResult.success(refund)


@register_handler("charge.refunded")
def handle_charge_refunded(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Complete the local Refund for a fully refunded charge.

    The event object is the charge; the refund id is taken from its
    embedded refund list when present.
    """
    charge = webhook_event.get_object()
    if not charge.get("id"):
        return _missing_object_id(webhook_event)

    if not charge.get("refunded"):
        logger.info(
            "Charge only partially refunded; ignoring",
            extra={"provider_event_id": webhook_event.provider_event_id},
        )
        return ServiceResult.success(None)

    refunds = (charge.get("refunds") or {}).get("data") or []
    provider_refund_id = refunds[0].get("id") if refunds else None

    refund = ReconciliationService.complete_refund(
        provider_refund_id=provider_refund_id,
        provider_intent_id=charge.get("payment_intent"),
        provider_status="succeeded",
    )
    if refund is None:
        return _refund_not_found(webhook_event)
    return ServiceResult.success(refund)
