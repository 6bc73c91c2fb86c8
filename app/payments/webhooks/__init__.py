"""
Webhook handling for processor events.

Webhooks are verified and stored idempotently by the view in
payments.webhooks.views, then processed asynchronously by the
process_webhook_event Celery task through this handler registry.

Usage:
    from payments.webhooks import dispatch_webhook

    result = dispatch_webhook(webhook_event)
"""

from payments.webhooks.handlers import (
    WEBHOOK_HANDLERS,
    dispatch_webhook,
    register_handler,
)

__all__ = [
    "WEBHOOK_HANDLERS",
    "dispatch_webhook",
    "register_handler",
]
