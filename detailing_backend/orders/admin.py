# orders/admin.py

"""
Receipts and quotes are read-only here: rows are written by the checkout
and quote services only. Coupons are maintained by hand.
"""

from django.contrib import admin

from orders.models import Coupon, Quote, QuoteItem, Transaction, TransactionItem

SNAPSHOT_FIELDS = (
    "item_type",
    "item_name",
    "quantity",
    "unit_price",
    "total_price",
    "is_taxable",
    "tax_amount",
    "tier_name",
    "vehicle_size_class",
)


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ("code", "kind", "value", "is_active", "expires_at", "use_count", "max_uses")
    list_filter = ("kind", "is_active")
    search_fields = ("code",)
    readonly_fields = ("use_count", "created_at")


class TransactionItemInline(admin.TabularInline):
    model = TransactionItem
    extra = 0
    can_delete = False
    fields = SNAPSHOT_FIELDS
    readonly_fields = SNAPSHOT_FIELDS


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("receipt_number", "customer", "total_amount", "payment_method", "status", "created_at")
    list_filter = ("status", "payment_method")
    search_fields = ("receipt_number", "customer__first_name", "customer__last_name")
    inlines = [TransactionItemInline]

    def has_change_permission(self, request, obj=None):
        return False


class QuoteItemInline(admin.TabularInline):
    model = QuoteItem
    extra = 0
    can_delete = False
    fields = SNAPSHOT_FIELDS
    readonly_fields = SNAPSHOT_FIELDS


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ("quote_number", "customer", "status", "total_amount", "valid_until")
    list_filter = ("status",)
    search_fields = ("quote_number",)
    readonly_fields = ("status", "sent_at", "viewed_at", "accepted_at", "converted_at")
    inlines = [QuoteItemInline]
