# orders/serializers/records.py

"""
Persisted records: transactions (receipts) and quotes.
"""

from rest_framework import serializers

from notifications.services.notification_service import CHANNEL_EMAIL, CHANNEL_SMS
from orders.models import Quote, QuoteItem, Transaction, TransactionItem

LINE_FIELDS = [
    "id",
    "item_type",
    "product",
    "service",
    "item_name",
    "quantity",
    "unit_price",
    "total_price",
    "is_taxable",
    "tax_amount",
    "tier_name",
    "vehicle_size_class",
    "per_unit_qty",
    "per_unit_price",
    "notes",
    "sort_order",
]


class TransactionItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = TransactionItem
        fields = LINE_FIELDS
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    items = TransactionItemSerializer(many=True, read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "receipt_number",
            "status",
            "customer",
            "vehicle",
            "quote",
            "user",
            "payment_method",
            "tax_rate",
            "subtotal_amount",
            "tax_amount",
            "discount_amount",
            "total_amount",
            "coupon",
            "coupon_discount",
            "loyalty_points_redeemed",
            "loyalty_discount",
            "manual_discount_amount",
            "manual_discount_label",
            "notes",
            "items",
            "created_at",
        ]
        read_only_fields = fields


class QuoteItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteItem
        fields = LINE_FIELDS
        read_only_fields = fields


class QuoteSerializer(serializers.ModelSerializer):
    items = QuoteItemSerializer(many=True, read_only=True)
    customer_name = serializers.SerializerMethodField()

    class Meta:
        model = Quote
        fields = [
            "id",
            "quote_number",
            "status",
            "customer",
            "customer_name",
            "vehicle",
            "valid_until",
            "tax_rate",
            "subtotal_amount",
            "tax_amount",
            "discount_amount",
            "total_amount",
            "notes",
            "items",
            "sent_at",
            "viewed_at",
            "accepted_at",
            "converted_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj):
        return obj.customer.full_name if obj.customer_id else ""


class QuoteSendSerializer(serializers.Serializer):
    channel = serializers.ChoiceField(choices=[CHANNEL_EMAIL, CHANNEL_SMS])
