"""
Webhook endpoint view for the payment processor.

The view:
1. Verifies the webhook signature
2. Creates/retrieves the WebhookEvent record (idempotent)
3. Queues the event for async processing
4. Returns immediately

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe-webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST
from kombu.exceptions import OperationalError

from payments.exceptions import WebhookSignatureError
from payments.models import WebhookEvent
from payments.services import ProcessorService
from payments.tasks import process_webhook_event

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and queue processor webhook events.

    Security:
    - 400 when no webhook secret is configured
    - 400 when the Stripe-Signature header is missing or invalid
    - CSRF exemption required for external webhooks

    Idempotency:
    - WebhookEvent.provider_event_id is unique
    - Redelivered events that were already processed return 200 without
      being queued again

    Returns:
        HttpResponse with status:
        - 200: Event accepted (new or duplicate)
        - 400: Missing configuration, invalid signature or payload
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("Webhook received but STRIPE_WEBHOOK_SECRET is not configured")
        return HttpResponse("Webhook secret not configured", status=400)

    signature = request.headers.get("Stripe-Signature", "")
    if not signature:
        logger.warning("Webhook received without Stripe-Signature header")
        return HttpResponse("Missing signature", status=400)

    try:
        event_data = ProcessorService.get_processor().verify_webhook(request.body, signature)
    except WebhookSignatureError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": e.message},
        )
        return HttpResponse("Invalid signature", status=400)

    provider_event_id = event_data.get("id")
    event_type = event_data.get("type")

    if not provider_event_id or not event_type:
        logger.warning("Webhook missing required fields")
        return HttpResponse("Invalid event", status=400)

    log_context = {"provider_event_id": provider_event_id, "event_type": event_type}
    logger.info(f"Received processor webhook: {event_type}", extra=log_context)

    webhook_event, created = WebhookEvent.objects.get_or_create(
        provider_event_id=provider_event_id,
        defaults={
            "event_type": event_type,
            "payload": event_data,
        },
    )

    if not created and webhook_event.is_processed:
        logger.info("Webhook already processed, returning success", extra=log_context)
        return HttpResponse("Already processed", status=200)

    try:
        process_webhook_event.delay(str(webhook_event.id))
    except OperationalError:
        # Stored as PENDING; the processor redelivers on non-2xx, so fail loudly
        logger.exception("Failed to queue webhook", extra=log_context)
        return HttpResponse("Queue unavailable", status=503)

    logger.info(
        "Webhook queued for processing",
        extra={**log_context, "webhook_event_id": str(webhook_event.id)},
    )
    return HttpResponse("Accepted", status=200)
