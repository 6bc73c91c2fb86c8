"""
Money helpers shared by checkout, refund and adapter code.

Amounts are stored as Decimal major units (dollars). The processor takes
integer minor units (cents).

Usage:
    from payments.money import normalize_refund_reason, to_minor_units

    to_minor_units(Decimal("10.005"))    # 1001
    normalize_refund_reason("Fraudulent")  # "fraudulent"
    normalize_refund_reason("changed my mind")  # "requested_by_customer"
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from core.exceptions import ValidationError

# Refund reasons the processor accepts
ALLOWED_REFUND_REASONS = frozenset(
    ["duplicate", "fraudulent", "requested_by_customer"]
)
DEFAULT_REFUND_REASON = "requested_by_customer"

_CENT = Decimal("0.01")


def to_minor_units(amount: Decimal | int | float | str) -> int:
    """
    Convert a major-unit amount to integer cents.

    Rounds half away from zero (ROUND_HALF_UP on Decimal rounds away
    from zero for both signs).

    Raises:
        ValidationError: If the amount is not a finite, non-negative number
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(
            f"Invalid amount: {amount!r}",
            error_code="INVALID_AMOUNT",
        ) from e

    if not value.is_finite():
        raise ValidationError(
            f"Invalid amount: {amount!r}",
            error_code="INVALID_AMOUNT",
        )
    if value < 0:
        raise ValidationError(
            f"Amount must not be negative: {amount!r}",
            error_code="INVALID_AMOUNT",
        )

    return int((value / _CENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_refund_reason(reason: str | None) -> str:
    """Map a free-form reason to one the processor accepts."""
    normalized = (reason or "").strip().lower()
    if normalized in ALLOWED_REFUND_REASONS:
        return normalized
    return DEFAULT_REFUND_REASON
