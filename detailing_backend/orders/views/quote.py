# orders/views/quote.py

"""
QUOTE API

Quotes are created from the same payload as a ticket preview. Expiry is lazy:
every read checks valid_until before returning the row.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from notifications.services.notification_service import get_notification_service
from orders.models import Quote
from orders.serializers import (
    OrderInputSerializer,
    OrderStateSerializer,
    QuoteSendSerializer,
    QuoteSerializer,
)
from orders.services import quote_service
from orders.views.errors import ORDER_ERRORS, error_response, order_error_response
from permissions.roles import CAP_QUOTES_MANAGE, CAP_QUOTES_SEND, HasCapability


class QuoteViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    queryset = (
        Quote.objects.select_related("customer", "vehicle")
        .prefetch_related("items")
        .order_by("-created_at")
    )
    serializer_class = QuoteSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filterset_fields = ["status", "customer"]

    required_capability = CAP_QUOTES_MANAGE

    def get_permissions(self):
        self.required_capability = CAP_QUOTES_SEND if self.action == "send" else CAP_QUOTES_MANAGE
        return super().get_permissions()

    def _render(self, quote, http_status=status.HTTP_200_OK):
        return Response(QuoteSerializer(quote).data, status=http_status)

    @extend_schema(tags=["Quotes"])
    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        rows = page if page is not None else list(queryset)

        for quote in rows:
            quote_service.expire_if_past_validity(quote)

        data = QuoteSerializer(rows, many=True).data
        if page is not None:
            return self.get_paginated_response(data)
        return Response(data)

    @extend_schema(responses=QuoteSerializer, tags=["Quotes"])
    def retrieve(self, request, pk=None):
        quote = self.get_object()
        quote_service.expire_if_past_validity(quote)
        return self._render(quote)

    @extend_schema(request=OrderInputSerializer, responses=QuoteSerializer, tags=["Quotes"])
    def create(self, request):
        serializer = OrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            quote = quote_service.create_quote(order_input=serializer.to_order_input(), user=request.user)
        except ORDER_ERRORS as exc:
            return order_error_response(exc)

        return self._render(self.get_queryset().get(id=quote.id), status.HTTP_201_CREATED)

    # --------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------

    @extend_schema(request=QuoteSendSerializer, tags=["Quotes"])
    @action(detail=True, methods=["post"], url_path="send")
    def send(self, request, pk=None):
        serializer = QuoteSendSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quote = self.get_object()

        try:
            result = quote_service.send_quote(
                quote,
                channel=serializer.validated_data["channel"],
                notifier=get_notification_service(),
            )
        except ORDER_ERRORS as exc:
            return order_error_response(exc)

        if not result.ok:
            return error_response(
                code="NOTIFICATION_FAILED",
                message=result.error_detail or "Quote could not be delivered.",
                http_status=status.HTTP_502_BAD_GATEWAY,
                details={"notification": result.as_dict(), "status": quote.status},
            )

        return Response({"quote": QuoteSerializer(quote).data, "notification": result.as_dict()})

    @extend_schema(request=None, responses=QuoteSerializer, tags=["Quotes"])
    @action(detail=True, methods=["post"], url_path="view")
    def mark_viewed(self, request, pk=None):
        quote = self.get_object()
        try:
            quote_service.mark_viewed(quote)
        except ORDER_ERRORS as exc:
            return order_error_response(exc)
        return self._render(quote)

    @extend_schema(request=None, responses=QuoteSerializer, tags=["Quotes"])
    @action(detail=True, methods=["post"], url_path="accept")
    def accept(self, request, pk=None):
        quote = self.get_object()
        try:
            quote_service.accept_quote(quote)
        except ORDER_ERRORS as exc:
            return order_error_response(exc)
        return self._render(quote)

    @extend_schema(request=None, responses=OrderStateSerializer, tags=["Quotes"])
    @action(detail=True, methods=["post"], url_path="convert")
    def convert(self, request, pk=None):
        quote = self.get_object()
        try:
            ticket = quote_service.convert_quote(quote)
        except ORDER_ERRORS as exc:
            return order_error_response(exc)

        return Response(
            {
                "quote_id": str(quote.id),
                "quote_number": quote.quote_number,
                "ticket": OrderStateSerializer(ticket).data,
            }
        )
