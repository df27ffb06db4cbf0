# orders/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from orders.views import CheckoutView, OrderPreviewView, TransactionViewSet

router = DefaultRouter()
router.register(r"transactions", TransactionViewSet, basename="order-transaction")

urlpatterns = [
    path("preview/", OrderPreviewView.as_view(), name="order-preview"),
    path("checkout/", CheckoutView.as_view(), name="order-checkout"),
    path("", include(router.urls)),
]
