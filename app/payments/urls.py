"""
URL configuration for the payments app.

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments import views
from payments.webhooks.views import stripe_webhook

app_name = "payments"

urlpatterns = [
    # Vendor onboarding
    path("vendor/connect-link/", views.VendorConnectLinkView.as_view(), name="vendor-connect-link"),
    path(
        "vendor/onboarding-status/",
        views.VendorOnboardingStatusView.as_view(),
        name="vendor-onboarding-status",
    ),
    path(
        "vendor/refresh-onboarding-status/",
        views.VendorRefreshOnboardingStatusView.as_view(),
        name="vendor-refresh-onboarding-status",
    ),
    path(
        "restaurants/<uuid:restaurant_id>/payment-ready/",
        views.RestaurantPaymentReadyView.as_view(),
        name="restaurant-payment-ready",
    ),
    # Checkout and intents
    path("checkout/session/", views.CheckoutSessionView.as_view(), name="checkout-session"),
    path("intents/", views.PaymentIntentCreateView.as_view(), name="intent-create"),
    path(
        "intents/authorize/",
        views.PaymentIntentAuthorizeView.as_view(),
        name="intent-authorize",
    ),
    path("capture/", views.CapturePaymentView.as_view(), name="capture"),
    # Internal order operations
    path(
        "internal/capture-by-order/",
        views.InternalCaptureByOrderView.as_view(),
        name="internal-capture-by-order",
    ),
    path(
        "internal/refund-by-order/",
        views.InternalRefundByOrderView.as_view(),
        name="internal-refund-by-order",
    ),
    path(
        "internal/cancel-by-order/",
        views.InternalCancelByOrderView.as_view(),
        name="internal-cancel-by-order",
    ),
    # Webhook endpoints
    path("webhooks/stripe/", stripe_webhook, name="stripe-webhook"),
]
