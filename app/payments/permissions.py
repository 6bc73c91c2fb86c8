"""
Permission classes for the payments API.

- HasInternalApiKey: caller is a sibling service presenting the shared
  X-Internal-Api-Key header

Internal endpoints (capture/refund/cancel by order) are called by the
order service, not by end users, so they carry no JWT.
"""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING

from django.conf import settings
from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView

INTERNAL_API_KEY_HEADER = "X-Internal-Api-Key"


class HasInternalApiKey(permissions.BasePermission):
    """
    Allows access when the request carries the configured internal key.

    An empty INTERNAL_API_KEY setting disables the check (local
    development).
    """

    message = "A valid internal API key is required."

    def has_permission(self, request: Request, view: APIView) -> bool:
        expected = settings.INTERNAL_API_KEY
        if not expected:
            return True
        provided = request.headers.get(INTERNAL_API_KEY_HEADER, "")
        return hmac.compare_digest(provided.encode(), expected.encode())
