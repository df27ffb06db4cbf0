# orders/views/ticket.py

"""
POS TICKET API

- preview: rebuild the ticket server-side and return the live totals
- checkout: finalize into a Transaction (idempotent)
- transactions: read-only receipt history

The client never sends prices for catalog lines. Whatever totals it shows
are replaced by the ones computed here.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.models import Transaction
from orders.serializers import (
    CheckoutInputSerializer,
    OrderInputSerializer,
    OrderStateSerializer,
    TransactionSerializer,
)
from orders.services.checkout_orchestrator import checkout_order
from orders.services.order_builder import build_order_state
from orders.views.errors import ORDER_ERRORS, error_response, order_error_response
from permissions.roles import CAP_POS_MANUAL_DISCOUNT, CAP_POS_SELL, HasCapability, user_has_capability

logger = logging.getLogger(__name__)


def _manual_discount_denied(request, data):
    if not data.get("manual_discount"):
        return None
    if user_has_capability(request.user, CAP_POS_MANUAL_DISCOUNT):
        return None
    return error_response(
        code="PERMISSION_DENIED",
        message="Manual discounts require a manager.",
        http_status=status.HTTP_403_FORBIDDEN,
    )


class OrderPreviewView(APIView):
    """
    Recompute a ticket without saving anything.
    """

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_SELL

    @extend_schema(request=OrderInputSerializer, responses=OrderStateSerializer, tags=["Orders"])
    def post(self, request):
        serializer = OrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        denied = _manual_discount_denied(request, serializer.validated_data)
        if denied is not None:
            return denied

        try:
            built = build_order_state(serializer.to_order_input())
        except ORDER_ERRORS as exc:
            return order_error_response(exc)

        data = OrderStateSerializer(built.state).data
        data["actions"] = [type(action).__name__ for action in built.actions]
        return Response(data, status=status.HTTP_200_OK)


class CheckoutView(APIView):
    """
    Finalize a ticket.

    201 on a new receipt, 200 when the idempotency_key was already used.
    """

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_SELL

    @extend_schema(request=CheckoutInputSerializer, responses=TransactionSerializer, tags=["Orders"])
    def post(self, request):
        serializer = CheckoutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        denied = _manual_discount_denied(request, data)
        if denied is not None:
            return denied

        try:
            result = checkout_order(
                user=request.user,
                order_input=serializer.to_order_input(),
                idempotency_key=data.get("idempotency_key") or None,
                payment_method=data.get("payment_method"),
                job_id=data.get("job_id"),
                quote_id=data.get("quote_id"),
            )
        except ORDER_ERRORS as exc:
            return order_error_response(exc)

        http_status = status.HTTP_200_OK if result.replayed else status.HTTP_201_CREATED
        return Response(TransactionSerializer(result.transaction).data, status=http_status)


class TransactionViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = (
        Transaction.objects.select_related("customer", "vehicle", "user")
        .prefetch_related("items")
        .order_by("-created_at")
    )
    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_SELL
    filterset_fields = ["status", "customer", "payment_method"]

    @extend_schema(tags=["Orders"])
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(tags=["Orders"])
    def retrieve(self, request, *args, **kwargs):
        return super().retrieve(request, *args, **kwargs)
