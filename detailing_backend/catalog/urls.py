# catalog/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from catalog.views import ProductViewSet, ServiceViewSet

router = DefaultRouter()
router.register(r"services", ServiceViewSet, basename="catalog-service")
router.register(r"products", ProductViewSet, basename="catalog-product")

urlpatterns = [
    path("", include(router.urls)),
]
