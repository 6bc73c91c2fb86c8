"""
Payment admin configuration.

Registers payment models with the Django admin for operator visibility.
State changes go through the service layer, so status fields are
read-only here.
"""

from django.contrib import admin

from payments.models import PaymentIntent, Refund, VendorAccount, WebhookEvent
from payments.tasks import process_webhook_event

__all__ = [
    "PaymentIntentAdmin",
    "RefundAdmin",
    "VendorAccountAdmin",
    "WebhookEventAdmin",
]


@admin.register(VendorAccount)
class VendorAccountAdmin(admin.ModelAdmin):
    """
    Admin configuration for VendorAccount.

    Provides visibility into connected account onboarding.
    """

    list_display = [
        "id",
        "owner_user_id",
        "provider_account_id",
        "onboarding_status",
        "charges_enabled",
        "payouts_enabled",
        "created_at",
    ]
    list_filter = ["onboarding_status", "charges_enabled", "payouts_enabled"]
    search_fields = ["id", "owner_user_id", "provider_account_id"]
    readonly_fields = [
        "id",
        "provider_account_id",
        "onboarding_status",
        "charges_enabled",
        "payouts_enabled",
        "details_submitted",
        "created_at",
        "updated_at",
        "version",
    ]
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "owner_user_id", "provider_account_id"),
            },
        ),
        (
            "Onboarding",
            {
                "fields": (
                    "onboarding_status",
                    "charges_enabled",
                    "payouts_enabled",
                    "details_submitted",
                ),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at", "version"),
            },
        ),
    )


class RefundInline(admin.TabularInline):
    """Inline display of refunds for a payment intent."""

    model = Refund
    extra = 0
    readonly_fields = ["id", "amount", "reason", "status", "provider_refund_id", "completed_at"]
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(PaymentIntent)
class PaymentIntentAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentIntent.

    failure_reason is where processor errors surface for operators.
    """

    list_display = [
        "id",
        "order_id",
        "amount_display",
        "status",
        "provider_intent_id",
        "created_at",
    ]
    list_filter = ["status", "provider", "currency", "created_at"]
    search_fields = ["id", "order_id", "provider_intent_id", "provider_transaction_id"]
    readonly_fields = [
        "id",
        "order_id",
        "amount",
        "service_fee",
        "currency",
        "status",
        "provider",
        "provider_intent_id",
        "provider_transaction_id",
        "failure_reason",
        "authorized_at",
        "captured_at",
        "created_at",
        "updated_at",
        "version",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    inlines = [RefundInline]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "order_id", "status"),
            },
        ),
        (
            "Amount",
            {
                "fields": ("amount", "service_fee", "currency"),
            },
        ),
        (
            "Processor",
            {
                "fields": (
                    "provider",
                    "provider_intent_id",
                    "provider_transaction_id",
                    "failure_reason",
                ),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("authorized_at", "captured_at", "created_at", "updated_at", "version"),
            },
        ),
    )

    @admin.display(description="Amount")
    def amount_display(self, obj: PaymentIntent) -> str:
        return f"{obj.amount} {obj.currency}"

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for payment intents (audit trail)."""
        return False


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    """Admin configuration for Refund."""

    list_display = [
        "id",
        "order_id",
        "payment_intent",
        "amount",
        "status",
        "provider_refund_id",
        "created_at",
    ]
    list_filter = ["status", "reason", "created_at"]
    search_fields = ["id", "order_id", "provider_refund_id", "payment_intent__provider_intent_id"]
    readonly_fields = [
        "id",
        "payment_intent",
        "order_id",
        "amount",
        "reason",
        "status",
        "provider_refund_id",
        "completed_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into webhook processing status. Failed events
    can be re-queued with the retry action.
    """

    list_display = [
        "id",
        "provider_event_id",
        "event_type",
        "status",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "created_at"]
    search_fields = ["id", "provider_event_id", "event_type"]
    readonly_fields = [
        "id",
        "provider_event_id",
        "event_type",
        "payload",
        "status",
        "processed_at",
        "error_message",
        "retry_count",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    actions = ["requeue_events"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "provider_event_id", "event_type", "status"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("processed_at", "retry_count", "error_message"),
            },
        ),
        (
            "Payload",
            {
                "fields": ("payload",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    @admin.action(description="Re-queue selected unprocessed events")
    def requeue_events(self, request, queryset):
        queued = 0
        for event in queryset:
            if event.is_processed:
                continue
            process_webhook_event.delay(str(event.id))
            queued += 1
        self.message_user(request, f"Queued {queued} webhook event(s).")

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook events (audit trail)."""
        return False
