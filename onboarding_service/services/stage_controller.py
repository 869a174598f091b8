"""
Onboarding pipeline - stage sequencing and rollback.

One OnboardingPipeline instance drives one onboarding attempt:

    Idle -> CheckingAvailability -> CollectingFitness -> CollectingPsychological
         -> Analyzing -> Synthesizing -> Registering -> Complete

A remote failure in Analyzing, Synthesizing or Registering ends the run as
Failed(reason): every collected input and intermediate result is dropped and
the pipeline is back in Idle, so the caller has to start over.

Calls are strictly sequential. While a remote call is in flight the pipeline
refuses new input; abandon() may still be called, and whatever the in-flight
call returns afterwards is discarded.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from onboarding_service.core.config import settings
from onboarding_service.core.errors import (
    AvailabilityConflict,
    InputValidationError,
    PipelineBusyError,
    RemoteServiceError,
    RemoteUnavailable,
    StageOrderError,
    TransformationInvariantViolation,
)
from onboarding_service.core.logger import logger, log_error, log_stage_transition
from onboarding_service.models.account import CanonicalAccountRecord, Credentials, RegisteredAccount
from onboarding_service.models.assessment import FitnessInput, PsychologicalInput
from onboarding_service.models.remote import (
    AnalysisResult,
    AnalysisUserData,
    AnalyzeAssessmentRequest,
    GenerateWorkoutRequest,
    WorkoutPlan,
)
from onboarding_service.services.profile_transformer import build_account_record
from onboarding_service.services.remote_clients import OnboardingClients


class Stage(str, Enum):
    IDLE = "idle"
    CHECKING_AVAILABILITY = "checking_availability"
    COLLECTING_FITNESS = "collecting_fitness"
    COLLECTING_PSYCHOLOGICAL = "collecting_psychological"
    ANALYZING = "analyzing"
    SYNTHESIZING = "synthesizing"
    REGISTERING = "registering"
    COMPLETE = "complete"
    FAILED = "failed"


class FailureReason(str, Enum):
    ANALYSIS_UNAVAILABLE = "analysis-unavailable"
    SYNTHESIS_UNAVAILABLE = "synthesis-unavailable"
    REGISTRATION_FAILED = "registration-failed"
    TRANSFORMATION_FAILED = "transformation-failed"


# Reason recorded when a chain stage dies on an unexpected error
CHAIN_FAILURE_REASONS = {
    Stage.ANALYZING: FailureReason.ANALYSIS_UNAVAILABLE,
    Stage.SYNTHESIZING: FailureReason.SYNTHESIS_UNAVAILABLE,
    Stage.REGISTERING: FailureReason.REGISTRATION_FAILED,
}

# Stage named in the user-facing failure notification
FAILED_STAGE_NAMES = {
    FailureReason.ANALYSIS_UNAVAILABLE: "analysis",
    FailureReason.SYNTHESIS_UNAVAILABLE: "workout generation",
    FailureReason.REGISTRATION_FAILED: "registration",
    FailureReason.TRANSFORMATION_FAILED: "profile synthesis",
}


@dataclass
class PipelineContext:
    """Transient, pipeline-local state. Never persisted on its own."""

    credentials: Optional[Credentials] = None
    fitness: Optional[FitnessInput] = None
    psychological: Optional[PsychologicalInput] = None
    analysis: Optional[AnalysisResult] = None
    workout_plan: Optional[WorkoutPlan] = None

    def clear(self) -> None:
        self.credentials = None
        self.fitness = None
        self.psychological = None
        self.analysis = None
        self.workout_plan = None


@dataclass(frozen=True)
class StageSnapshot:
    """What a caller can observe about a pipeline between calls."""

    stage: Stage
    has_credentials: bool = False
    has_fitness: bool = False
    has_psychological: bool = False
    has_analysis: bool = False
    has_workout_plan: bool = False


@dataclass(frozen=True)
class PipelineOutcome:
    """Result of the analysis -> synthesis -> registration chain."""

    stage: Stage
    failure_reason: Optional[FailureReason] = None
    error: Optional[RemoteServiceError] = None
    analysis: Optional[AnalysisResult] = None
    workout_plan: Optional[WorkoutPlan] = None
    account: Optional[RegisteredAccount] = None
    abandoned: bool = False

    @property
    def succeeded(self) -> bool:
        return self.stage is Stage.COMPLETE

    @property
    def failed_stage(self) -> Optional[str]:
        if self.failure_reason is None:
            return None
        return FAILED_STAGE_NAMES[self.failure_reason]


def build_analysis_request(
    fitness: FitnessInput, psychological: PsychologicalInput
) -> AnalyzeAssessmentRequest:
    """Readiness answers plus the fitness fields the analysis weighs."""
    readiness = psychological.readinessAssessment
    return AnalyzeAssessmentRequest(
        narrative=readiness.narrative,
        efficacyBeliefs=readiness.efficacyBeliefs,
        motivations=readiness.motivations,
        challenges=readiness.challenges,
        readinessScore=readiness.readinessScore,
        userData=AnalysisUserData(
            age=fitness.basicInfo.age,
            experienceLevel=fitness.fitnessProfile.experienceLevel,
            currentActivityLevel=fitness.fitnessProfile.currentActivityLevel,
            sleepQuality=fitness.lifestyle.sleepQuality,
            stressLevel=fitness.lifestyle.stressLevel,
            workoutPreferences=list(fitness.fitnessProfile.workoutPreferences),
            timeCommitment=fitness.lifestyle.timeCommitment,
        ),
    )


def build_workout_request(
    fitness: FitnessInput, psychological: PsychologicalInput
) -> GenerateWorkoutRequest:
    """Fitness profile plus psychological barriers as obstacles."""
    return GenerateWorkoutRequest(
        fitnessGoal=fitness.fitnessProfile.fitnessGoal,
        experienceLevel=fitness.fitnessProfile.experienceLevel,
        age=fitness.basicInfo.age,
        gender=fitness.basicInfo.gender,
        currentActivityLevel=fitness.fitnessProfile.currentActivityLevel,
        workoutPreferences=list(fitness.fitnessProfile.workoutPreferences),
        obstacles=list(psychological.readinessAssessment.barriers),
        timeCommitment=fitness.lifestyle.timeCommitment,
    )


def _validate(model: type[BaseModel], data: Any, label: str):
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InputValidationError(
            f"Invalid {label}", errors=e.errors(include_url=False, include_context=False)
        ) from e


class OnboardingPipeline:
    """Stage controller for a single onboarding attempt."""

    def __init__(
        self,
        clients: OnboardingClients,
        retry_attempts: int | None = None,
        retry_wait: wait_base | None = None,
        transformer: Callable[..., CanonicalAccountRecord] = build_account_record,
    ) -> None:
        self.run_id = uuid.uuid4().hex[:12]
        self._clients = clients
        if retry_attempts is None:
            retry_attempts = settings.STAGE_RETRY_ATTEMPTS
        self._retry_attempts = retry_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)
        self._transform = transformer
        self._context = PipelineContext()
        self._stage = Stage.IDLE
        self._in_flight = False
        # Bumped on abandon; responses carrying an older token are dropped
        self._token = 0
        self.last_failure: Optional[PipelineOutcome] = None
        self.outcome: Optional[PipelineOutcome] = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def busy(self) -> bool:
        return self._in_flight

    def snapshot(self) -> StageSnapshot:
        ctx = self._context
        return StageSnapshot(
            stage=self._stage,
            has_credentials=ctx.credentials is not None,
            has_fitness=ctx.fitness is not None,
            has_psychological=ctx.psychological is not None,
            has_analysis=ctx.analysis is not None,
            has_workout_plan=ctx.workout_plan is not None,
        )

    # ------------------------------------------------------------------
    # Stage inputs
    # ------------------------------------------------------------------

    async def begin(self, credentials: Credentials | dict) -> StageSnapshot:
        """
        Check the identifier and open the assessment stages.

        Raises:
            AvailabilityConflict: Identifier taken; pipeline stays Idle
            RemoteUnavailable / RemoteRejected: Gate failed; pipeline stays Idle
        """
        self._expect(Stage.IDLE)
        creds = _validate(Credentials, credentials, "credentials")

        token = self._token
        self._transition(Stage.CHECKING_AVAILABILITY)
        self._in_flight = True
        try:
            available = await self._clients.gate.is_available(creds.username)
        except RemoteServiceError as e:
            if not self._is_current(token):
                self._discard("check-availability")
                return self.snapshot()
            log_error("Availability check", e)
            self._transition(Stage.IDLE)
            raise
        except Exception:
            if self._is_current(token):
                self._transition(Stage.IDLE)
            raise
        finally:
            self._settle(token)

        if not self._is_current(token):
            self._discard("check-availability")
            return self.snapshot()

        if not available:
            logger.info(f"Pipeline {self.run_id}: identifier already exists")
            self._transition(Stage.IDLE)
            raise AvailabilityConflict(creds.username)

        self._context.credentials = creds
        self._transition(Stage.COLLECTING_FITNESS)
        return self.snapshot()

    async def submit_fitness(self, data: FitnessInput | dict) -> StageSnapshot:
        """Store the fitness round. Invalid input leaves the stage unchanged."""
        self._expect(Stage.COLLECTING_FITNESS)
        self._context.fitness = _validate(FitnessInput, data, "fitness assessment")
        self._transition(Stage.COLLECTING_PSYCHOLOGICAL)
        return self.snapshot()

    async def submit_psychological(self, data: PsychologicalInput | dict) -> PipelineOutcome:
        """
        Store the psychological round and run the remaining chain.

        Returns:
            PipelineOutcome - Complete with analysis, plan and account, or
            Failed with the reason naming the stage that failed

        Raises:
            InputValidationError: Invalid input; nothing is called
            TransformationInvariantViolation: Record could not be built

        Any other error raised mid-chain rolls the run back before it propagates.
        """
        self._expect(Stage.COLLECTING_PSYCHOLOGICAL)
        self._context.psychological = _validate(PsychologicalInput, data, "psychological assessment")

        token = self._token
        self._in_flight = True
        try:
            return await self._run_chain(token)
        except Exception as e:
            reason = CHAIN_FAILURE_REASONS.get(self._stage)
            if reason is not None and self._is_current(token):
                log_error(f"Pipeline {self.run_id} {FAILED_STAGE_NAMES[reason]}", e)
                self._rollback(reason)
            raise
        finally:
            self._settle(token)

    def abandon(self) -> None:
        """Drop the attempt. Responses still in flight will be ignored."""
        if self._stage is Stage.COMPLETE:
            return
        self._token += 1
        self._in_flight = False
        self._context.clear()
        if self._stage is not Stage.IDLE:
            self._transition(Stage.IDLE)

    # ------------------------------------------------------------------
    # Remote chain
    # ------------------------------------------------------------------

    async def _run_chain(self, token: int) -> PipelineOutcome:
        ctx = self._context

        self._transition(Stage.ANALYZING)
        try:
            analysis = await self._call(
                self._clients.analysis.analyze,
                build_analysis_request(ctx.fitness, ctx.psychological),
            )
        except RemoteServiceError as e:
            return self._fail(token, FailureReason.ANALYSIS_UNAVAILABLE, e)
        if not self._is_current(token):
            return self._discard("analyze-assessment")
        ctx.analysis = analysis

        self._transition(Stage.SYNTHESIZING)
        try:
            workout_plan = await self._call(
                self._clients.synthesis.generate,
                build_workout_request(ctx.fitness, ctx.psychological),
            )
        except RemoteServiceError as e:
            return self._fail(token, FailureReason.SYNTHESIS_UNAVAILABLE, e)
        if not self._is_current(token):
            return self._discard("generate-workout")
        ctx.workout_plan = workout_plan

        self._transition(Stage.REGISTERING)
        try:
            record = self._transform(ctx.credentials, ctx.fitness, ctx.psychological, analysis)
        except TransformationInvariantViolation as e:
            log_error("Profile synthesis", e)
            self._rollback(FailureReason.TRANSFORMATION_FAILED)
            raise

        try:
            account = await self._call(self._clients.registration.register, record)
        except RemoteServiceError as e:
            return self._fail(token, FailureReason.REGISTRATION_FAILED, e)
        if not self._is_current(token):
            return self._discard("register")

        self.outcome = PipelineOutcome(
            stage=Stage.COMPLETE,
            analysis=analysis,
            workout_plan=workout_plan,
            account=account,
        )
        self._context.clear()
        self._transition(Stage.COMPLETE)
        return self.outcome

    async def _call(self, fn: Callable[[Any], Awaitable[Any]], request: Any) -> Any:
        """Invoke one adapter, retrying RemoteUnavailable only when configured."""
        if self._retry_attempts <= 1:
            return await fn(request)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(RemoteUnavailable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                result = await fn(request)
        return result

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _fail(self, token: int, reason: FailureReason, error: RemoteServiceError) -> PipelineOutcome:
        if not self._is_current(token):
            return self._discard(reason.value)
        log_error(f"Pipeline {self.run_id} {FAILED_STAGE_NAMES[reason]}", error)
        return self._rollback(reason, error)

    def _rollback(self, reason: FailureReason, error: RemoteServiceError | None = None) -> PipelineOutcome:
        """Enter Failed(reason), drop everything, land back in Idle."""
        self._context.clear()
        self._transition(Stage.FAILED)
        self.last_failure = PipelineOutcome(stage=Stage.FAILED, failure_reason=reason, error=error)
        self._transition(Stage.IDLE)
        return self.last_failure

    def _discard(self, operation: str) -> PipelineOutcome:
        logger.info(f"Pipeline {self.run_id}: discarding {operation} response for abandoned run")
        return PipelineOutcome(stage=self._stage, abandoned=True)

    def _expect(self, stage: Stage) -> None:
        if self._in_flight:
            raise PipelineBusyError(f"Pipeline {self.run_id} is waiting on a remote call")
        if self._stage is not stage:
            raise StageOrderError(
                f"Pipeline {self.run_id} is in stage '{self._stage.value}', expected '{stage.value}'"
            )

    def _transition(self, stage: Stage) -> None:
        log_stage_transition(self.run_id, self._stage.value, stage.value)
        self._stage = stage

    def _is_current(self, token: int) -> bool:
        return token == self._token

    def _settle(self, token: int) -> None:
        if self._is_current(token):
            self._in_flight = False
