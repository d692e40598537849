import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class InfluencoreException(Exception):
    """base exception for influencore-specific errors"""
    status_code: int = 500

    def __init__(self, message: str = "internal server error"):
        super().__init__(message)
        self.message = message


class ValidationError(InfluencoreException):
    """raised when an input is rejected"""
    status_code = 400


class AuthenticationError(InfluencoreException):
    """raised when no owner identity is attached to a request"""
    status_code = 401

    def __init__(self, message: str = "authentication required"):
        super().__init__(message)


class NotFoundError(InfluencoreException):
    status_code = 404

    def __init__(self, message: str = "resource not found"):
        super().__init__(message)


class JobNotFoundError(NotFoundError):
    """raised when no job record exists for an id"""

    def __init__(self, job_id):
        super().__init__(f"job {job_id} not found")
        self.job_id = job_id


class InvalidJobStateError(InfluencoreException):
    """raised when a job is not in a state that allows the operation"""
    status_code = 409

    def __init__(self, job_id, status, expected: str = "pending"):
        status = getattr(status, "value", status)
        super().__init__(f"job {job_id} is {status}, expected {expected}")
        self.job_id = job_id
        self.status = status


class ExternalServiceError(InfluencoreException):
    """raised when a downstream generation or storage service fails"""
    status_code = 502

    def __init__(self, message: str = "external service error"):
        super().__init__(message)


class JobCancelledError(InfluencoreException):
    """raised inside a run whose cancellation token was triggered"""

    def __init__(self, job_id):
        super().__init__(f"job {job_id} cancelled")
        self.job_id = job_id


class FailureKind(str, Enum):
    DOWNSTREAM = "downstream"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


@dataclass(frozen=True)
class PhaseFailure:
    kind: FailureKind
    message: str


def classify_failure(error: BaseException) -> PhaseFailure:
    """
    tag an exception raised while a job was running

    every kind still ends the job as failed, the tag only records why
    """
    if isinstance(error, (asyncio.CancelledError, JobCancelledError)):
        return PhaseFailure(FailureKind.CANCELLED, "cancelled")
    message = str(error) or error.__class__.__name__
    if isinstance(error, ExternalServiceError):
        return PhaseFailure(FailureKind.DOWNSTREAM, message)
    return PhaseFailure(FailureKind.INTERNAL, message)


def handle_job_error(job_id, error: BaseException, failure: PhaseFailure):
    """
    centralized error handler for generation jobs
    logs the failure with its traceback, cancellations without one
    """
    if failure.kind == FailureKind.CANCELLED:
        logger.warning(f"job {job_id} cancelled")
        return
    logger.error(
        f"job {job_id} failed ({failure.kind.value}): {failure.message}",
        exc_info=(type(error), error, error.__traceback__)
    )
