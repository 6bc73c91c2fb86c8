"""
Vendor Directory client.

Resolves a restaurant id to the user id of the vendor who owns it.
Successful lookups are cached; ownership rarely changes and readiness
checks run on every menu view.

Usage:
    from payments.clients import VendorDirectoryClient

    owner_id = VendorDirectoryClient.get_owner_id(restaurant_id)
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.core.cache import cache

from payments.clients.base import SiblingServiceClient
from payments.exceptions import SiblingServiceError

CACHE_KEY_PREFIX = "payments:restaurant_owner"


class VendorDirectoryClient(SiblingServiceClient):
    """Looks up restaurant owners in the restaurant service."""

    base_url_setting = "RESTAURANT_SERVICE_BASE_URL"
    service_name = "Restaurant service"

    @staticmethod
    def _cache_key(restaurant_id: uuid.UUID) -> str:
        return f"{CACHE_KEY_PREFIX}:{restaurant_id}"

    @classmethod
    def get_owner_id(cls, restaurant_id: uuid.UUID) -> uuid.UUID | None:
        """
        Return the owning vendor's user id, or None if unknown.

        Misses and failures are not cached.
        """
        cache_key = cls._cache_key(restaurant_id)
        cached = cache.get(cache_key)
        if cached is not None:
            return uuid.UUID(cached)

        try:
            body = cls._get_json(f"/api/restaurant/{restaurant_id}")
        except SiblingServiceError as e:
            cls.get_logger().warning(
                f"Restaurant owner lookup failed: {e.message}",
                extra={"restaurant_id": str(restaurant_id)},
            )
            return None

        raw_owner = body.get("ownerId") or body.get("OwnerId")
        try:
            owner_id = uuid.UUID(str(raw_owner))
        except ValueError:
            cls.get_logger().warning(
                "Restaurant response had no valid owner id",
                extra={"restaurant_id": str(restaurant_id), "owner_id": raw_owner},
            )
            return None

        cache.set(
            cache_key,
            str(owner_id),
            timeout=getattr(settings, "VENDOR_DIRECTORY_CACHE_SECONDS", 300),
        )
        return owner_id
