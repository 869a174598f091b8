"""Exception hierarchy for the onboarding pipeline."""

from __future__ import annotations


class OnboardingError(Exception):
    """Base exception for all onboarding_service errors."""


class InputValidationError(OnboardingError):
    """Collected input is missing fields or out of range.

    Raised before any remote call; the pipeline stays in its current
    collection stage.
    """

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class AvailabilityConflict(OnboardingError):
    """The requested identifier is already registered."""

    def __init__(self, identifier: str) -> None:
        super().__init__("Username already exists")
        self.identifier = identifier


class StageOrderError(OnboardingError):
    """Input was submitted to a pipeline that is not expecting it."""


class PipelineBusyError(OnboardingError):
    """A remote call is in flight; the pipeline accepts no new input."""


class RemoteServiceError(OnboardingError):
    """A call to one of the remote onboarding services failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class RemoteUnavailable(RemoteServiceError):
    """Remote service could not be reached (network error, timeout, 502-504)."""


class RemoteRejected(RemoteServiceError):
    """Remote service was reached but refused the request."""


class TransformationInvariantViolation(OnboardingError):
    """Validated input could not be turned into an account record.

    Unreachable while input validation holds; a programmer error.
    """
