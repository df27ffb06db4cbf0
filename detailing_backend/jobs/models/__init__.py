# jobs/models/__init__.py

from .job import Job
from .job_addon import JobAddon
from .job_photo import JobPhoto

__all__ = ["Job", "JobAddon", "JobPhoto"]
