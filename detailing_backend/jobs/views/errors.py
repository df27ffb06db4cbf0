# jobs/views/errors.py

from rest_framework import status
from rest_framework.response import Response

from jobs.services.exceptions import (
    AddonExpiredError,
    AddonNotFoundError,
    AddonStateError,
    AddonValidationError,
    CancellationNotAllowedError,
    DuplicateAddonError,
    JobError,
    JobNotFoundError,
    JobPermissionError,
    JobPersistenceError,
    JobValidationError,
    PerUnitIncrementRequired,
    TimerStateError,
    TransitionGuardError,
)


# ======================================================
# API ERROR NORMALIZATION
# ======================================================

def error_response(*, code: str, message: str, http_status: int, details=None):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return Response({"error": body}, status=http_status)


# Most specific first: subclasses must precede their bases.
_ERROR_MAP = (
    (JobNotFoundError, "JOB_NOT_FOUND", status.HTTP_404_NOT_FOUND),
    (AddonNotFoundError, "ADDON_NOT_FOUND", status.HTTP_404_NOT_FOUND),
    (JobPermissionError, "PERMISSION_DENIED", status.HTTP_403_FORBIDDEN),
    (CancellationNotAllowedError, "CANCELLATION_NOT_ALLOWED", status.HTTP_409_CONFLICT),
    (TransitionGuardError, "TRANSITION_NOT_ALLOWED", status.HTTP_409_CONFLICT),
    (TimerStateError, "TIMER_STATE", status.HTTP_409_CONFLICT),
    (AddonExpiredError, "ADDON_EXPIRED", status.HTTP_410_GONE),
    (AddonStateError, "ADDON_STATE", status.HTTP_409_CONFLICT),
    (PerUnitIncrementRequired, "PER_UNIT_INCREMENT_REQUIRED", status.HTTP_409_CONFLICT),
    (DuplicateAddonError, "DUPLICATE_ADDON", status.HTTP_409_CONFLICT),
    (AddonValidationError, "ADDON_INVALID", status.HTTP_400_BAD_REQUEST),
    (JobValidationError, "JOB_INVALID", status.HTTP_400_BAD_REQUEST),
    (JobPersistenceError, "PERSISTENCE_FAILED", status.HTTP_503_SERVICE_UNAVAILABLE),
)


def job_error_response(exc: JobError):
    details = None
    if isinstance(exc, TransitionGuardError) and exc.shortfall is not None:
        details = {"coverage": exc.shortfall.as_dict()}
    elif isinstance(exc, PerUnitIncrementRequired):
        details = {"service_id": exc.service_id}

    for exc_type, code, http_status in _ERROR_MAP:
        if isinstance(exc, exc_type):
            return error_response(code=code, message=str(exc), http_status=http_status, details=details)

    return error_response(code="JOB_ERROR", message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
