"""
Processor capability interface and the data types that cross it.

Services depend on ProcessorClient, never on the Stripe SDK. StripeAdapter
is the production binding; tests use a fake with the same methods.

Usage:
    from payments.adapters.protocols import ProcessorClient, RefundParams

    def issue_refund(processor: ProcessorClient, intent) -> RefundResult:
        return processor.refund(
            RefundParams(
                provider_intent_id=intent.provider_intent_id,
                amount_cents=to_minor_units(intent.amount),
                reason="requested_by_customer",
                idempotency_key=key,
            )
        )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import uuid
    from typing import Any


# =============================================================================
# Parameters
# =============================================================================


@dataclass
class CheckoutSessionParams:
    """
    Parameters for a destination-charge checkout session.

    Attributes:
        order_id: Order being paid
        amount_cents: Full amount charged to the customer
        application_fee_cents: Platform fee retained from amount_cents
        destination_account_id: Vendor connected account receiving the rest
        success_url / cancel_url: Customer redirect targets
        currency: Lower-case ISO 4217 code
        idempotency_key: Key collapsing retried creates
    """

    order_id: uuid.UUID
    amount_cents: int
    application_fee_cents: int
    destination_account_id: str
    success_url: str
    cancel_url: str
    currency: str = "usd"
    idempotency_key: str | None = None

    def __post_init__(self) -> None:
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if self.application_fee_cents < 0:
            raise ValueError("application_fee_cents must not be negative")
        if self.application_fee_cents > self.amount_cents:
            raise ValueError("application_fee_cents must not exceed amount_cents")
        if not self.destination_account_id:
            raise ValueError("destination_account_id is required")


@dataclass
class RefundParams:
    """
    Parameters for a processor refund.

    Attributes:
        provider_intent_id: Processor intent being refunded
        amount_cents: Amount to refund
        reason: One of duplicate / fraudulent / requested_by_customer
        idempotency_key: Deterministic key for the refund
        reverse_transfer: Pull the vendor's share back proportionally
        refund_application_fee: Return the platform fee proportionally
    """

    provider_intent_id: str
    amount_cents: int
    reason: str
    idempotency_key: str
    reverse_transfer: bool = True
    refund_application_fee: bool = True

    def __post_init__(self) -> None:
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")


# =============================================================================
# Results
# =============================================================================


@dataclass
class AccountResult:
    """Connected account flags as reported by the processor."""

    id: str
    charges_enabled: bool = False
    payouts_enabled: bool = False
    details_submitted: bool = False
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class CheckoutSessionResult:
    """
    Result of creating a checkout session.

    Attributes:
        id: Session id (cs_xxx)
        url: Hosted checkout URL for the customer (may be empty on error)
        payment_intent_id: Processor intent id backing the session, if any
    """

    id: str
    url: str | None
    payment_intent_id: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentIntentResult:
    """
    Result from processor payment intent operations.

    Attributes:
        id: Intent id (pi_xxx)
        status: Processor status (requires_capture, succeeded, canceled, ...)
        latest_charge: Charge id (ch_xxx) when one exists
        last_error: Last payment error message, if any
        client_secret: Client-side confirmation secret (create only)
    """

    id: str
    status: str
    latest_charge: str | None = None
    last_error: str | None = None
    client_secret: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class RefundResult:
    """
    Result from processor refund operations.

    Attributes:
        id: Refund id (re_xxx)
        status: succeeded, pending, requires_action, failed, canceled
        amount_cents: Refunded amount
        payment_intent_id: Refunded intent id
    """

    id: str
    status: str
    amount_cents: int
    payment_intent_id: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


# =============================================================================
# Processor Interface
# =============================================================================


@runtime_checkable
class ProcessorClient(Protocol):
    """
    Narrow capability interface over an external payment processor.

    Every method raises a payments.exceptions.ProcessorError subclass on
    failure and never returns a partially filled result.
    """

    def create_account(
        self, owner_user_id: uuid.UUID, idempotency_key: str | None = None
    ) -> AccountResult:
        """Create a connected account for a vendor."""
        ...

    def create_onboarding_link(
        self, account_id: str, return_url: str, refresh_url: str
    ) -> str:
        """Create a hosted onboarding link and return its URL."""
        ...

    def get_account(self, account_id: str) -> AccountResult:
        """Fetch current account flags."""
        ...

    def create_checkout_session(
        self, params: CheckoutSessionParams
    ) -> CheckoutSessionResult:
        """Create a destination-charge checkout session."""
        ...

    def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str | None = None,
    ) -> PaymentIntentResult:
        """Create a payment intent with automatic payment methods."""
        ...

    def confirm_payment_intent(
        self, provider_intent_id: str, payment_method_id: str
    ) -> PaymentIntentResult:
        """Confirm an intent with a payment method."""
        ...

    def capture(
        self, provider_intent_id: str, idempotency_key: str | None = None
    ) -> PaymentIntentResult:
        """Capture an authorized intent."""
        ...

    def cancel(
        self, provider_intent_id: str, reason: str = "requested_by_customer"
    ) -> PaymentIntentResult:
        """Cancel (void) an uncaptured intent."""
        ...

    def refund(self, params: RefundParams) -> RefundResult:
        """Refund an intent."""
        ...

    def verify_webhook(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify a webhook signature and return the parsed event."""
        ...
