# orders/serializers/order.py

"""
ORDER SERIALIZERS

Input:  the POS ticket as submitted (ids + quantities, never prices for catalog
        lines). It is rebuilt server-side by order_builder.
Output: OrderState snapshots from the reducer.
"""

from rest_framework import serializers

from orders.services.order_builder import OrderInput
from orders.services.order_state import DISCOUNT_DOLLAR, DISCOUNT_PERCENT, ITEM_TYPE_CHOICES


# ============================================================
# INPUT
# ============================================================


class OrderLineInputSerializer(serializers.Serializer):
    item_type = serializers.ChoiceField(choices=ITEM_TYPE_CHOICES)
    product_id = serializers.UUIDField(required=False, allow_null=True)
    service_id = serializers.UUIDField(required=False, allow_null=True)
    tier_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    quantity = serializers.IntegerField(required=False, min_value=1, default=1)
    per_unit_qty = serializers.IntegerField(required=False, min_value=1, allow_null=True)

    # custom items only
    name = serializers.CharField(required=False, allow_blank=True, default="")
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    is_taxable = serializers.BooleanField(required=False, default=False)

    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        item_type = attrs["item_type"]
        if item_type == "product" and not attrs.get("product_id"):
            raise serializers.ValidationError({"product_id": "required for product lines"})
        if item_type == "service" and not attrs.get("service_id"):
            raise serializers.ValidationError({"service_id": "required for service lines"})
        if item_type == "custom" and attrs.get("unit_price") is None:
            raise serializers.ValidationError({"unit_price": "required for custom lines"})
        return attrs


class ManualDiscountInputSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=[DISCOUNT_DOLLAR, DISCOUNT_PERCENT])
    value = serializers.DecimalField(max_digits=10, decimal_places=2)
    label = serializers.CharField(required=False, allow_blank=True, default="")


class OrderInputSerializer(serializers.Serializer):
    items = OrderLineInputSerializer(many=True, required=False, default=list)
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    vehicle_id = serializers.UUIDField(required=False, allow_null=True)
    coupon_code = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    loyalty_points = serializers.IntegerField(required=False, min_value=0, default=0)
    manual_discount = ManualDiscountInputSerializer(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def to_order_input(self) -> OrderInput:
        return OrderInput.from_dict(self.validated_data)


class CheckoutInputSerializer(OrderInputSerializer):
    idempotency_key = serializers.CharField(required=False, allow_blank=True, max_length=64)
    payment_method = serializers.CharField(required=False, default="cash")
    job_id = serializers.UUIDField(required=False, allow_null=True)
    quote_id = serializers.UUIDField(required=False, allow_null=True)


# ============================================================
# OUTPUT
# ============================================================


class LineItemStateSerializer(serializers.Serializer):
    id = serializers.CharField()
    item_type = serializers.CharField()
    product_id = serializers.CharField(allow_null=True)
    service_id = serializers.CharField(allow_null=True)
    item_name = serializers.CharField()
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_taxable = serializers.BooleanField()
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    tier_name = serializers.CharField(allow_null=True)
    vehicle_size_class = serializers.CharField(allow_null=True)
    per_unit_qty = serializers.IntegerField(allow_null=True)
    per_unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    per_unit_label = serializers.CharField(allow_null=True)
    notes = serializers.CharField()
    is_locked = serializers.BooleanField()


class OrderStateSerializer(serializers.Serializer):
    items = LineItemStateSerializer(many=True)
    customer_id = serializers.SerializerMethodField()
    vehicle_id = serializers.SerializerMethodField()
    coupon = serializers.SerializerMethodField()
    loyalty_points_to_redeem = serializers.IntegerField()
    loyalty_discount = serializers.DecimalField(max_digits=12, decimal_places=2)
    manual_discount = serializers.SerializerMethodField()
    notes = serializers.CharField()
    tax_rate = serializers.DecimalField(max_digits=6, decimal_places=4)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_over_discounted = serializers.BooleanField()

    def get_customer_id(self, state):
        return state.customer.id if state.customer else None

    def get_vehicle_id(self, state):
        return state.vehicle.id if state.vehicle else None

    def get_coupon(self, state):
        if state.coupon is None:
            return None
        return {"code": state.coupon.code, "discount_amount": str(state.coupon.discount_amount)}

    def get_manual_discount(self, state):
        md = state.manual_discount
        if md is None:
            return None
        return {"kind": md.kind, "value": str(md.value), "amount": str(md.amount), "label": md.label}
