"""
In-memory processor binding for service tests.

FakeProcessor implements ProcessorClient without network access. It
records every call and behaves like the real processor where the
engine depends on it: a repeated refund idempotency key returns the
original refund instead of creating a second one.

Usage:
    processor = FakeProcessor()
    ProcessorService.set_processor(processor)

    processor.fail_next("refund", ProcessorUnavailable("down"))
    processor.refund_status = "pending"
"""

from __future__ import annotations

import itertools
from typing import Any

from payments.adapters import (
    AccountResult,
    CheckoutSessionParams,
    CheckoutSessionResult,
    PaymentIntentResult,
    RefundParams,
    RefundResult,
)
from payments.exceptions import WebhookSignatureError


class FakeProcessor:
    """Records calls and returns configurable results."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._ids = itertools.count(1)
        self._failures: dict[str, Exception] = {}

        # Configurable outcomes
        self.account_flags = {
            "charges_enabled": True,
            "payouts_enabled": True,
            "details_submitted": True,
        }
        self.checkout_url: str | None = "https://checkout.stripe.test/session"
        self.checkout_payment_intent_id: str | None = "pi_checkout_1"
        self.confirm_status = "succeeded"
        self.confirm_error: str | None = None
        self.capture_status = "succeeded"
        self.cancel_status = "canceled"
        self.refund_status = "succeeded"
        self.webhook_event: dict[str, Any] = {}
        self.on_refund = None

        # Processor-side state
        self.refunds_by_key: dict[str, RefundResult] = {}

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def fail_next(self, operation: str, error: Exception) -> None:
        """Raise error on the next call to operation."""
        self._failures[operation] = error

    def _record(self, operation: str, **kwargs: Any) -> None:
        self.calls.append((operation, kwargs))
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}_fake_{next(self._ids)}"

    def calls_to(self, operation: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == operation]

    @property
    def processor_refund_count(self) -> int:
        """Distinct refunds that exist at the processor."""
        return len(self.refunds_by_key)

    # -------------------------------------------------------------------------
    # ProcessorClient
    # -------------------------------------------------------------------------

    def create_account(self, owner_user_id, idempotency_key=None) -> AccountResult:
        self._record(
            "create_account",
            owner_user_id=owner_user_id,
            idempotency_key=idempotency_key,
        )
        return AccountResult(id=self._next_id("acct"))

    def create_onboarding_link(self, account_id, return_url, refresh_url) -> str:
        self._record(
            "create_onboarding_link",
            account_id=account_id,
            return_url=return_url,
            refresh_url=refresh_url,
        )
        return f"https://connect.stripe.test/setup/{account_id}"

    def get_account(self, account_id) -> AccountResult:
        self._record("get_account", account_id=account_id)
        return AccountResult(id=account_id, **self.account_flags)

    def create_checkout_session(self, params: CheckoutSessionParams) -> CheckoutSessionResult:
        self._record("create_checkout_session", params=params)
        return CheckoutSessionResult(
            id=self._next_id("cs"),
            url=self.checkout_url,
            payment_intent_id=self.checkout_payment_intent_id,
        )

    def create_payment_intent(
        self, amount_cents, currency, metadata, idempotency_key=None
    ) -> PaymentIntentResult:
        self._record(
            "create_payment_intent",
            amount_cents=amount_cents,
            currency=currency,
            metadata=metadata,
            idempotency_key=idempotency_key,
        )
        return PaymentIntentResult(
            id=self._next_id("pi"),
            status="requires_payment_method",
            client_secret="secret_fake",
        )

    def confirm_payment_intent(self, provider_intent_id, payment_method_id) -> PaymentIntentResult:
        self._record(
            "confirm_payment_intent",
            provider_intent_id=provider_intent_id,
            payment_method_id=payment_method_id,
        )
        return PaymentIntentResult(
            id=provider_intent_id,
            status=self.confirm_status,
            latest_charge="ch_fake_confirm",
            last_error=self.confirm_error,
        )

    def capture(self, provider_intent_id, idempotency_key=None) -> PaymentIntentResult:
        self._record(
            "capture",
            provider_intent_id=provider_intent_id,
            idempotency_key=idempotency_key,
        )
        return PaymentIntentResult(
            id=provider_intent_id,
            status=self.capture_status,
            latest_charge="ch_fake_capture",
        )

    def cancel(self, provider_intent_id, reason="requested_by_customer") -> PaymentIntentResult:
        self._record("cancel", provider_intent_id=provider_intent_id, reason=reason)
        return PaymentIntentResult(id=provider_intent_id, status=self.cancel_status)

    def refund(self, params: RefundParams) -> RefundResult:
        self._record("refund", params=params)
        existing = self.refunds_by_key.get(params.idempotency_key)
        if existing is None:
            existing = RefundResult(
                id=self._next_id("re"),
                status=self.refund_status,
                amount_cents=params.amount_cents,
                payment_intent_id=params.provider_intent_id,
            )
            self.refunds_by_key[params.idempotency_key] = existing
        if self.on_refund is not None:
            self.on_refund(existing)
        return existing

    def verify_webhook(self, payload, signature) -> dict[str, Any]:
        self._record("verify_webhook", signature=signature)
        if signature != "valid":
            raise WebhookSignatureError("Invalid webhook signature")
        return self.webhook_event
