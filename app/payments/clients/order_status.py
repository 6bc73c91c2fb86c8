"""
Order Status Oracle client.

The order service owns each order's lifecycle status. The refund
decision engine asks it whether an order may be refunded; the answer is
advisory, so a failed lookup is reported as None rather than raised.
An answer without a status is reported as "", which callers treat as
not refundable.

Usage:
    from payments.clients import OrderStatusClient

    status = OrderStatusClient.get_status(order_id)
    if status is None:
        ...  # oracle unreachable, fall back to local checks
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from payments.clients.base import SiblingServiceClient
from payments.exceptions import SiblingServiceError

if TYPE_CHECKING:
    import uuid


class OrderStatusClient(SiblingServiceClient):
    """Reads order lifecycle status from the order service."""

    base_url_setting = "ORDER_SERVICE_BASE_URL"
    service_name = "Order service"

    @classmethod
    def get_status(cls, order_id: uuid.UUID) -> str | None:
        """
        Fetch the order's lifecycle status (e.g. "Completed").

        Returns:
            The status string, "" when the service answered without one,
            or None when the service could not answer
        """
        try:
            body = cls._get_json(f"/api/order/internal/{order_id}/status")
        except SiblingServiceError as e:
            cls.get_logger().warning(
                f"Order status lookup failed: {e.message}",
                extra={"order_id": str(order_id)},
            )
            return None

        status = body.get("status") or body.get("Status")
        if not status:
            cls.get_logger().warning(
                "Order status response had no status",
                extra={"order_id": str(order_id)},
            )
            return ""
        return str(status)
