# jobs/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from jobs.views import AddonAuthorizationView, JobViewSet

router = DefaultRouter()
router.register(r"", JobViewSet, basename="job")

urlpatterns = [
    path(
        "addons/authorize/<str:token>/",
        AddonAuthorizationView.as_view(),
        name="job-addon-authorize",
    ),
    path("", include(router.urls)),
]
