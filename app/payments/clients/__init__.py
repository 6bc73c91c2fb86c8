"""
HTTP clients for sibling services.

Both clients fail open: transport errors, non-2xx answers and malformed
bodies are logged and reported as None so callers can decide how to
degrade.

Usage:
    from payments.clients import OrderStatusClient, VendorDirectoryClient

    status = OrderStatusClient.get_status(order_id)        # "Completed" or None
    owner_id = VendorDirectoryClient.get_owner_id(restaurant_id)
"""

from payments.clients.order_status import OrderStatusClient
from payments.clients.vendor_directory import VendorDirectoryClient

__all__ = [
    "OrderStatusClient",
    "VendorDirectoryClient",
]
