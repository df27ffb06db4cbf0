# jobs/services/exceptions.py

"""
JOB DOMAIN ERRORS

- Validation: caller-correctable input problems
- Guards: a transition the current job state does not allow
- Persistence: the repository write failed; nothing was committed
"""


class JobError(Exception):
    pass


class JobNotFoundError(JobError):
    pass


class JobValidationError(JobError):
    pass


class TransitionGuardError(JobError):
    """
    Refused status transition. `shortfall` carries the coverage report when
    the refusal is about missing photos.
    """

    def __init__(self, message: str, *, shortfall=None):
        super().__init__(message)
        self.shortfall = shortfall


class CancellationNotAllowedError(TransitionGuardError):
    pass


class JobPermissionError(JobError):
    pass


class TimerStateError(JobError):
    pass


class JobPersistenceError(JobError):
    pass


# ============================================================
# ADD-ONS
# ============================================================


class AddonError(JobError):
    pass


class AddonNotFoundError(AddonError):
    pass


class AddonValidationError(AddonError):
    pass


class DuplicateAddonError(AddonValidationError):
    pass


class PerUnitIncrementRequired(AddonValidationError):
    """
    The service is already on the job and is priced per unit: increment the
    existing line instead of recommending it again.
    """

    def __init__(self, message: str, *, service_id: str):
        super().__init__(message)
        self.service_id = service_id


class AddonStateError(AddonError):
    pass


class AddonExpiredError(AddonError):
    """
    Response arrived after expires_at. `addon` is the expired record the
    caller must persist (JobLifecycleController.respond_to_addon does).
    """

    def __init__(self, message: str, *, addon=None):
        super().__init__(message)
        self.addon = addon
