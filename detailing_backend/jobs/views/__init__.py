# jobs/views/__init__.py

from .authorization import AddonAuthorizationView
from .job import JobViewSet

__all__ = ["AddonAuthorizationView", "JobViewSet"]
