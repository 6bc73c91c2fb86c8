"""
URL configuration for the payment service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/payments/              - Payment endpoints
        vendor/connect-link/                - Create onboarding link
        vendor/onboarding-status/           - Onboarding status
        vendor/refresh-onboarding-status/   - Refresh onboarding from processor
        restaurants/{id}/payment-ready/     - Restaurant payment readiness
        checkout/session/                   - Create checkout session
        intents/                            - Create payment intent
        intents/authorize/                  - Authorize payment intent
        capture/                            - Capture payment intent
        internal/capture-by-order/          - Capture by order (internal)
        internal/refund-by-order/           - Refund decision (internal)
        internal/cancel-by-order/           - Void by order (internal)
        webhooks/stripe/                    - Stripe webhook endpoint (POST)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Payments Admin"
admin.site.site_title = "Payments Admin Portal"
admin.site.index_title = "Payment Operations"
