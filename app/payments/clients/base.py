"""
Shared HTTP plumbing for sibling-service clients.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests
from django.conf import settings

from payments.exceptions import SiblingServiceError


class SiblingServiceClient:
    """
    Base class for JSON GET clients against internal services.

    Subclasses set base_url_setting to the name of the Django setting
    holding the service's base URL.
    """

    base_url_setting: str = ""
    service_name: str = ""

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    def _base_url(cls) -> str:
        return getattr(settings, cls.base_url_setting).rstrip("/")

    @classmethod
    def _headers(cls) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        api_key = getattr(settings, "INTERNAL_API_KEY", "")
        if api_key:
            headers["X-Internal-Api-Key"] = api_key
        return headers

    @classmethod
    def _get_json(cls, path: str) -> dict[str, Any]:
        """
        GET base_url + path and return the decoded JSON object.

        Raises:
            SiblingServiceError: Transport failure, non-2xx status or a
                body that is not a JSON object
        """
        url = f"{cls._base_url()}{path}"
        timeout = getattr(settings, "SIBLING_SERVICE_TIMEOUT_SECONDS", 5)
        log_context = {"service": cls.service_name, "url": url}

        start_time = time.time()
        try:
            response = requests.get(url, headers=cls._headers(), timeout=timeout)
        except requests.RequestException as e:
            raise SiblingServiceError(
                f"{cls.service_name} unreachable: {e}",
                details=log_context,
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        cls.get_logger().debug(
            "Sibling service call completed",
            extra={
                **log_context,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        if response.status_code < 200 or response.status_code >= 300:
            raise SiblingServiceError(
                f"{cls.service_name} returned HTTP {response.status_code}",
                details={**log_context, "status_code": response.status_code},
            )

        try:
            body = response.json()
        except ValueError as e:
            raise SiblingServiceError(
                f"{cls.service_name} returned invalid JSON",
                details=log_context,
            ) from e

        if not isinstance(body, dict):
            raise SiblingServiceError(
                f"{cls.service_name} returned an unexpected body",
                details=log_context,
            )
        return body
