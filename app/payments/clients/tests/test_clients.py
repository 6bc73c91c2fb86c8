"""
Tests for sibling-service HTTP clients.

requests.get is patched; no network access.
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest
import requests

from payments.clients import OrderStatusClient, VendorDirectoryClient
from payments.clients.base import SiblingServiceClient
from payments.exceptions import SiblingServiceError


def make_response(status_code: int = 200, body=None, json_error: bool = False):
    response = MagicMock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def mock_get():
    with patch("payments.clients.base.requests.get") as mock:
        yield mock


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()


# =============================================================================
# Shared Plumbing
# =============================================================================


class TestSiblingServiceClient:
    """Tests for the JSON GET helper."""

    def test_sends_internal_key_and_timeout(self, mock_get, settings):
        settings.INTERNAL_API_KEY = "internal-key"
        settings.SIBLING_SERVICE_TIMEOUT_SECONDS = 3
        settings.ORDER_SERVICE_BASE_URL = "http://orders.local/"
        mock_get.return_value = make_response(body={"status": "Completed"})

        OrderStatusClient._get_json("/ping")

        mock_get.assert_called_once_with(
            "http://orders.local/ping",
            headers={"Accept": "application/json", "X-Internal-Api-Key": "internal-key"},
            timeout=3,
        )

    def test_omits_key_when_unset(self, mock_get, settings):
        settings.INTERNAL_API_KEY = ""
        mock_get.return_value = make_response(body={})

        OrderStatusClient._get_json("/ping")

        assert mock_get.call_args.kwargs["headers"] == {"Accept": "application/json"}

    @pytest.mark.parametrize(
        "response_kwargs",
        [
            {"status_code": 500, "body": {}},
            {"status_code": 404, "body": {}},
            {"status_code": 200, "json_error": True},
            {"status_code": 200, "body": ["not", "an", "object"]},
        ],
    )
    def test_bad_responses_raise(self, mock_get, response_kwargs):
        mock_get.return_value = make_response(**response_kwargs)

        with pytest.raises(SiblingServiceError):
            OrderStatusClient._get_json("/ping")

    def test_transport_error_raises(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(SiblingServiceError) as exc_info:
            OrderStatusClient._get_json("/ping")

        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_subclass_of_base(self):
        assert issubclass(OrderStatusClient, SiblingServiceClient)
        assert issubclass(VendorDirectoryClient, SiblingServiceClient)


# =============================================================================
# Order Status
# =============================================================================


class TestOrderStatusClient:
    """Tests for OrderStatusClient.get_status."""

    def test_returns_status(self, mock_get, settings):
        settings.ORDER_SERVICE_BASE_URL = "http://orders.local"
        order_id = uuid.uuid4()
        mock_get.return_value = make_response(body={"status": "Completed"})

        assert OrderStatusClient.get_status(order_id) == "Completed"
        assert mock_get.call_args.args[0] == (
            f"http://orders.local/api/order/internal/{order_id}/status"
        )

    def test_accepts_pascal_case_field(self, mock_get):
        mock_get.return_value = make_response(body={"Status": "Cancelled"})

        assert OrderStatusClient.get_status(uuid.uuid4()) == "Cancelled"

    @pytest.mark.parametrize("body", [{"orderId": "x"}, {"status": ""}, {"Status": None}])
    def test_answer_without_status_is_empty(self, mock_get, body):
        mock_get.return_value = make_response(body=body)

        assert OrderStatusClient.get_status(uuid.uuid4()) == ""

    def test_non_2xx_is_none(self, mock_get):
        mock_get.return_value = make_response(status_code=503, body={})

        assert OrderStatusClient.get_status(uuid.uuid4()) is None

    def test_failure_is_none(self, mock_get):
        mock_get.side_effect = requests.Timeout("timed out")

        assert OrderStatusClient.get_status(uuid.uuid4()) is None


# =============================================================================
# Vendor Directory
# =============================================================================


class TestVendorDirectoryClient:
    """Tests for VendorDirectoryClient.get_owner_id."""

    def test_returns_owner_id(self, mock_get, settings):
        settings.RESTAURANT_SERVICE_BASE_URL = "http://restaurants.local"
        restaurant_id = uuid.uuid4()
        owner_id = uuid.uuid4()
        mock_get.return_value = make_response(body={"ownerId": str(owner_id)})

        assert VendorDirectoryClient.get_owner_id(restaurant_id) == owner_id
        assert mock_get.call_args.args[0] == (
            f"http://restaurants.local/api/restaurant/{restaurant_id}"
        )

    def test_successful_lookup_is_cached(self, mock_get):
        restaurant_id = uuid.uuid4()
        owner_id = uuid.uuid4()
        mock_get.return_value = make_response(body={"OwnerId": str(owner_id)})

        first = VendorDirectoryClient.get_owner_id(restaurant_id)
        second = VendorDirectoryClient.get_owner_id(restaurant_id)

        assert first == second == owner_id
        assert mock_get.call_count == 1

    def test_invalid_owner_is_none_and_not_cached(self, mock_get):
        restaurant_id = uuid.uuid4()
        mock_get.return_value = make_response(body={"ownerId": "nobody"})

        assert VendorDirectoryClient.get_owner_id(restaurant_id) is None
        assert VendorDirectoryClient.get_owner_id(restaurant_id) is None
        assert mock_get.call_count == 2

    def test_failure_is_none(self, mock_get):
        mock_get.return_value = make_response(status_code=503, body={})

        assert VendorDirectoryClient.get_owner_id(uuid.uuid4()) is None
