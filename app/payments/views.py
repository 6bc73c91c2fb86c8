"""
DRF views for payments app.

This module provides API views for:
- Vendor onboarding (connect link, status, refresh)
- Restaurant payment readiness
- Checkout sessions and direct payment intents
- Capture
- Internal order operations (capture/refund/cancel by order)

Endpoints (prefixed with /api/v1/payments/):
    POST vendor/connect-link/                 - Create onboarding link
    GET  vendor/onboarding-status/            - Current onboarding status
    POST vendor/refresh-onboarding-status/    - Refresh from processor
    GET  restaurants/{id}/payment-ready/      - Readiness check (public)
    POST checkout/session/                    - Create checkout session
    POST intents/                             - Create payment intent
    POST intents/authorize/                   - Confirm with payment method
    POST capture/                             - Capture a payment intent
    POST internal/capture-by-order/           - Capture an order's payment
    POST internal/refund-by-order/            - Refund decision for an order
    POST internal/cancel-by-order/            - Void an order's payment
    POST webhooks/stripe/                     - Processor webhooks

Security:
    - Vendor, checkout and intent endpoints require a JWT; the user_id
      claim identifies the caller
    - Internal endpoints require the X-Internal-Api-Key header
    - Webhooks verify the processor signature
"""

from __future__ import annotations

import logging
import uuid

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError

from payments.permissions import HasInternalApiKey
from payments.serializers import (
    AuthorizePaymentSerializer,
    CancelResultSerializer,
    CapturePaymentSerializer,
    CheckoutSessionRequestSerializer,
    CheckoutSessionResponseSerializer,
    ConnectLinkSerializer,
    CreatePaymentIntentSerializer,
    OnboardingStatusSerializer,
    OperationResultSerializer,
    OrderReferenceSerializer,
    PaymentIntentCreatedSerializer,
    PaymentReadySerializer,
    RefundByOrderSerializer,
    RefundDecisionSerializer,
)
from payments.services import (
    CaptureService,
    CheckoutRequest,
    CheckoutService,
    PaymentIntentService,
    RefundDecisionService,
    VendorAccountService,
)

logger = logging.getLogger(__name__)


def error_response(exc: BaseApplicationError) -> Response:
    """Render an application error with its own HTTP status."""
    return Response(exc.to_dict(), status=exc.http_status)


def current_user_id(request) -> uuid.UUID | None:
    """
    Identity user id from the JWT user_id claim.

    Returns None when the claim is not a UUID.
    """
    try:
        return uuid.UUID(str(request.user.id))
    except (TypeError, ValueError, AttributeError):
        return None


INVALID_IDENTITY = {"message": "Invalid user identity", "error_code": "INVALID_USER_ID"}


# =============================================================================
# Vendor Onboarding
# =============================================================================


class VendorConnectLinkView(APIView):
    """
    Create a processor onboarding link for the current vendor.

    POST /api/v1/payments/vendor/connect-link/

    Creates the connected account on first use.

    Response:
        200 OK: {"url": "..."}
        502/503: Processor failure
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_vendor_connect_link",
        summary="Create onboarding link",
        request=None,
        responses={
            200: ConnectLinkSerializer,
            503: OpenApiResponse(description="Processor unavailable"),
        },
        tags=["Payments - Vendor"],
    )
    def post(self, request):
        user_id = current_user_id(request)
        if user_id is None:
            return Response(INVALID_IDENTITY, status=status.HTTP_400_BAD_REQUEST)

        try:
            url = VendorAccountService.create_onboarding_link(user_id)
        except BaseApplicationError as e:
            logger.warning(f"Onboarding link failed: {e.error_code}", extra={"user_id": str(user_id)})
            return error_response(e)

        return Response(ConnectLinkSerializer({"url": url}).data)


class VendorOnboardingStatusView(APIView):
    """
    Current vendor onboarding status.

    GET /api/v1/payments/vendor/onboarding-status/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_vendor_onboarding_status",
        summary="Get onboarding status",
        responses={200: OnboardingStatusSerializer},
        tags=["Payments - Vendor"],
    )
    def get(self, request):
        user_id = current_user_id(request)
        if user_id is None:
            return Response(INVALID_IDENTITY, status=status.HTTP_400_BAD_REQUEST)

        provider_account_id, onboarding_status = VendorAccountService.get_onboarding_status(
            user_id
        )
        return Response(
            OnboardingStatusSerializer(
                {"provider_account_id": provider_account_id, "status": onboarding_status}
            ).data
        )


class VendorRefreshOnboardingStatusView(APIView):
    """
    Refresh onboarding status from the processor.

    POST /api/v1/payments/vendor/refresh-onboarding-status/

    Response:
        200 OK: {"provider_account_id": "...", "status": "..."}
        400 Bad Request: Vendor has no connected account
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="refresh_vendor_onboarding_status",
        summary="Refresh onboarding status",
        request=None,
        responses={
            200: OnboardingStatusSerializer,
            400: OpenApiResponse(description="No connected account"),
        },
        tags=["Payments - Vendor"],
    )
    def post(self, request):
        user_id = current_user_id(request)
        if user_id is None:
            return Response(INVALID_IDENTITY, status=status.HTTP_400_BAD_REQUEST)

        try:
            VendorAccountService.refresh_for_user(user_id)
        except BaseApplicationError as e:
            return error_response(e)

        provider_account_id, onboarding_status = VendorAccountService.get_onboarding_status(
            user_id
        )
        return Response(
            OnboardingStatusSerializer(
                {"provider_account_id": provider_account_id, "status": onboarding_status}
            ).data
        )


class RestaurantPaymentReadyView(APIView):
    """
    Whether a restaurant's owner can take payments.

    GET /api/v1/payments/restaurants/{restaurant_id}/payment-ready/

    Public: used by storefronts to decide whether to offer checkout.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        operation_id="get_restaurant_payment_ready",
        summary="Restaurant payment readiness",
        responses={200: PaymentReadySerializer},
        tags=["Payments - Vendor"],
    )
    def get(self, request, restaurant_id):
        ready = VendorAccountService.is_restaurant_payment_ready(restaurant_id)
        return Response(
            PaymentReadySerializer(
                {"restaurant_id": restaurant_id, "payment_ready": ready}
            ).data
        )


# =============================================================================
# Checkout & Payment Intents
# =============================================================================


class CheckoutSessionView(APIView):
    """
    Create a split-payment checkout session.

    POST /api/v1/payments/checkout/session/

    Response:
        200 OK: {"url": "https://checkout.stripe.com/..."}
        400 Bad Request: Invalid amounts or vendor not ready
        503 Service Unavailable: Processor unreachable (safe to retry)
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_checkout_session",
        summary="Create checkout session",
        request=CheckoutSessionRequestSerializer,
        responses={
            200: CheckoutSessionResponseSerializer,
            400: OpenApiResponse(description="Validation error or vendor not ready"),
            503: OpenApiResponse(description="Processor unavailable"),
        },
        tags=["Payments - Checkout"],
    )
    def post(self, request):
        serializer = CheckoutSessionRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            session = CheckoutService.build_checkout_session(
                CheckoutRequest(**serializer.validated_data)
            )
        except BaseApplicationError as e:
            logger.warning(
                f"Checkout rejected: {e.error_code}",
                extra={"order_id": str(serializer.validated_data["order_id"])},
            )
            return error_response(e)

        return Response(CheckoutSessionResponseSerializer({"url": session.url}).data)


class PaymentIntentCreateView(APIView):
    """
    Create a payment intent for the direct (non-hosted) flow.

    POST /api/v1/payments/intents/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_payment_intent",
        summary="Create payment intent",
        request=CreatePaymentIntentSerializer,
        responses={201: PaymentIntentCreatedSerializer},
        tags=["Payments - Intents"],
    )
    def post(self, request):
        serializer = CreatePaymentIntentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            intent = PaymentIntentService.create_payment_intent(**serializer.validated_data)
        except BaseApplicationError as e:
            return error_response(e)

        return Response(
            PaymentIntentCreatedSerializer({"payment_intent_id": intent.id}).data,
            status=status.HTTP_201_CREATED,
        )


class PaymentIntentAuthorizeView(APIView):
    """
    Confirm a payment intent with a payment method.

    POST /api/v1/payments/intents/authorize/

    Response:
        200 OK: Authorized
        400 Bad Request: Declined or invalid request
        404 Not Found: Unknown payment intent
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="authorize_payment_intent",
        summary="Authorize payment intent",
        request=AuthorizePaymentSerializer,
        responses={200: OperationResultSerializer, 400: OperationResultSerializer},
        tags=["Payments - Intents"],
    )
    def post(self, request):
        serializer = AuthorizePaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            authorized = PaymentIntentService.authorize_payment(**serializer.validated_data)
        except BaseApplicationError as e:
            return error_response(e)

        return Response(
            OperationResultSerializer({"success": authorized}).data,
            status=status.HTTP_200_OK if authorized else status.HTTP_400_BAD_REQUEST,
        )


class CapturePaymentView(APIView):
    """
    Capture a specific payment intent.

    POST /api/v1/payments/capture/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="capture_payment_intent",
        summary="Capture payment intent",
        request=CapturePaymentSerializer,
        responses={200: OperationResultSerializer, 400: OperationResultSerializer},
        tags=["Payments - Capture"],
    )
    def post(self, request):
        serializer = CapturePaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        captured = CaptureService.capture_payment(serializer.validated_data["payment_intent_id"])
        return Response(
            OperationResultSerializer({"success": captured}).data,
            status=status.HTTP_200_OK if captured else status.HTTP_400_BAD_REQUEST,
        )


# =============================================================================
# Internal Order Operations
# =============================================================================


class InternalCaptureByOrderView(APIView):
    """
    Capture an order's payment.

    POST /api/v1/payments/internal/capture-by-order/
    """

    permission_classes = [HasInternalApiKey]
    authentication_classes = []

    @extend_schema(
        operation_id="internal_capture_by_order",
        summary="Capture by order",
        request=OrderReferenceSerializer,
        responses={200: OperationResultSerializer, 400: OperationResultSerializer},
        tags=["Payments - Internal"],
    )
    def post(self, request):
        serializer = OrderReferenceSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        captured = CaptureService.capture_by_order_id(serializer.validated_data["order_id"])
        return Response(
            OperationResultSerializer({"success": captured}).data,
            status=status.HTTP_200_OK if captured else status.HTTP_400_BAD_REQUEST,
        )


class InternalRefundByOrderView(APIView):
    """
    Run the refund decision engine for an order.

    POST /api/v1/payments/internal/refund-by-order/

    Always 200 with the decision; policy outcomes are reported in
    "action", not as HTTP errors.
    """

    permission_classes = [HasInternalApiKey]
    authentication_classes = []

    @extend_schema(
        operation_id="internal_refund_by_order",
        summary="Refund by order",
        request=RefundByOrderSerializer,
        responses={200: RefundDecisionSerializer},
        tags=["Payments - Internal"],
    )
    def post(self, request):
        serializer = RefundByOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        decision = RefundDecisionService.resolve(
            serializer.validated_data["order_id"],
            reason=serializer.validated_data.get("reason"),
        )
        return Response(decision.to_dict())


class InternalCancelByOrderView(APIView):
    """
    Void an order's uncaptured payment.

    POST /api/v1/payments/internal/cancel-by-order/
    """

    permission_classes = [HasInternalApiKey]
    authentication_classes = []

    @extend_schema(
        operation_id="internal_cancel_by_order",
        summary="Cancel by order",
        request=OrderReferenceSerializer,
        responses={200: CancelResultSerializer},
        tags=["Payments - Internal"],
    )
    def post(self, request):
        serializer = OrderReferenceSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        cancelled = RefundDecisionService.cancel_by_order_id(
            serializer.validated_data["order_id"]
        )
        return Response(CancelResultSerializer({"cancelled": cancelled}).data)
