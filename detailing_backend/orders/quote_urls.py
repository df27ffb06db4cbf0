# orders/quote_urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from orders.views import QuoteViewSet

router = DefaultRouter()
router.register(r"", QuoteViewSet, basename="quote")

urlpatterns = [
    path("", include(router.urls)),
]
