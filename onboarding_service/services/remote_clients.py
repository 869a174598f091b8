"""
Thin async adapters over the remote onboarding endpoints.

Each adapter performs exactly one JSON POST per call and never retries.
Failures come back typed so the pipeline can tell an unreachable service
(RemoteUnavailable) from one that refused the request (RemoteRejected).
"""
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ValidationError

from onboarding_service.core.config import settings
from onboarding_service.core.errors import RemoteRejected, RemoteUnavailable
from onboarding_service.core.logger import logger, log_remote_call, log_error
from onboarding_service.models.account import CanonicalAccountRecord, RegisteredAccount
from onboarding_service.models.remote import (
    AnalysisResult,
    AnalyzeAssessmentRequest,
    AvailabilityRequest,
    AvailabilityResponse,
    GenerateWorkoutRequest,
    WorkoutPlan,
)


# Gateway statuses mean the service behind the proxy never answered
UNAVAILABLE_STATUSES = {502, 503, 504}


def extract_error(response: httpx.Response) -> tuple[str, Optional[str]]:
    """
    Pull a machine-readable message and code out of an error response.

    Accepts {"error", "code"}, {"message"} and FastAPI-style {"detail"}
    bodies, falling back to the raw text.
    """
    try:
        body = response.json()
    except ValueError:
        return (response.text or f"HTTP {response.status_code}"), None

    if isinstance(body, dict):
        message = body.get("error") or body.get("message") or body.get("detail")
        code = body.get("code")
        if message:
            return str(message), (str(code) if code is not None else None)
    return f"HTTP {response.status_code}", None


class RemoteServiceClient:
    """Shared transport for the onboarding endpoints."""

    operation = "remote call"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.ONBOARDING_API_BASE_URL).rstrip("/")
        self.timeout = httpx.Timeout(
            timeout or settings.REMOTE_TIMEOUT,
            connect=settings.REMOTE_CONNECT_TIMEOUT,
        )
        self._transport = transport

    async def post_json(self, path: str, payload: BaseModel) -> Any:
        """
        POST a request model and return the decoded JSON body.

        Raises:
            RemoteUnavailable: On network errors, timeouts or 502/503/504
            RemoteRejected: On any other non-2xx status or an unreadable body
        """
        url = f"{self.base_url}{path}"
        log_remote_call(self.operation, url)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, json=payload.model_dump(mode="json"))
            except httpx.TimeoutException as e:
                log_error(self.operation, e)
                raise RemoteUnavailable(f"{self.operation} timed out") from e
            except httpx.TransportError as e:
                log_error(self.operation, e)
                raise RemoteUnavailable(f"{self.operation} unreachable: {e}") from e
            except httpx.HTTPError as e:
                # Reached the service but could not read its reply (e.g. bad Content-Encoding)
                log_error(self.operation, e)
                raise RemoteRejected(f"{self.operation} returned an unreadable response: {e}") from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                log_error(f"{self.operation} JSON parsing", e)
                raise RemoteRejected(
                    f"{self.operation} returned a non-JSON body",
                    status_code=response.status_code,
                ) from e

        message, code = extract_error(response)
        logger.warning(f"{self.operation} failed with HTTP {response.status_code}: {message}")
        error_cls = RemoteUnavailable if response.status_code in UNAVAILABLE_STATUSES else RemoteRejected
        raise error_cls(message, status_code=response.status_code, code=code)

    def parse(self, model: type[BaseModel], body: Any):
        """Validate a response body; a malformed body counts as a rejection."""
        try:
            return model.model_validate(body)
        except ValidationError as e:
            log_error(f"{self.operation} response validation", e)
            raise RemoteRejected(f"{self.operation} returned an invalid response") from e


class AvailabilityGate(RemoteServiceClient):
    operation = "check-availability"

    async def is_available(self, identifier: str) -> bool:
        body = await self.post_json(
            settings.CHECK_AVAILABILITY_PATH, AvailabilityRequest(identifier=identifier)
        )
        return self.parse(AvailabilityResponse, body).available


class AnalysisClient(RemoteServiceClient):
    operation = "analyze-assessment"

    async def analyze(self, request: AnalyzeAssessmentRequest) -> AnalysisResult:
        body = await self.post_json(settings.ANALYZE_ASSESSMENT_PATH, request)
        return self.parse(AnalysisResult, body)


class WorkoutSynthesisClient(RemoteServiceClient):
    operation = "generate-workout"

    async def generate(self, request: GenerateWorkoutRequest) -> WorkoutPlan:
        body = await self.post_json(settings.GENERATE_WORKOUT_PATH, request)
        # Some deployments wrap the plan: {"workoutPlan": {...}}
        if isinstance(body, dict) and isinstance(body.get("workoutPlan"), dict):
            body = body["workoutPlan"]
        return self.parse(WorkoutPlan, body)


class RegistrationClient(RemoteServiceClient):
    operation = "register"

    async def register(self, record: CanonicalAccountRecord) -> RegisteredAccount:
        body = await self.post_json(settings.REGISTER_PATH, record)
        if isinstance(body, dict) and isinstance(body.get("user"), dict):
            body = body["user"]
        return self.parse(RegisteredAccount, body)


@dataclass(frozen=True)
class OnboardingClients:
    """The four adapters one pipeline run talks to."""

    gate: AvailabilityGate
    analysis: AnalysisClient
    synthesis: WorkoutSynthesisClient
    registration: RegistrationClient

    @classmethod
    def from_settings(cls, transport: httpx.AsyncBaseTransport | None = None) -> "OnboardingClients":
        return cls(
            gate=AvailabilityGate(transport=transport),
            analysis=AnalysisClient(transport=transport),
            synthesis=WorkoutSynthesisClient(transport=transport),
            registration=RegistrationClient(transport=transport),
        )
