# jobs/serializers/__init__.py

from .job import (
    AddonResponseSerializer,
    AddonSerializer,
    CancelCommandSerializer,
    FlagAddonCommandSerializer,
    JobCreateSerializer,
    JobListSerializer,
    JobSerializer,
    PhotoCommandSerializer,
    PublicAddonSerializer,
    TimerCommandSerializer,
)

__all__ = [
    "AddonResponseSerializer",
    "AddonSerializer",
    "CancelCommandSerializer",
    "FlagAddonCommandSerializer",
    "JobCreateSerializer",
    "JobListSerializer",
    "JobSerializer",
    "PhotoCommandSerializer",
    "PublicAddonSerializer",
    "TimerCommandSerializer",
]
