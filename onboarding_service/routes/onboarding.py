"""
Onboarding routes - drive one pipeline per session over HTTP.
"""
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Depends, Request

from onboarding_service.core.auth import verify_internal_secret
from onboarding_service.core.errors import (
    AvailabilityConflict,
    PipelineBusyError,
    RemoteServiceError,
    StageOrderError,
    TransformationInvariantViolation,
)
from onboarding_service.core.limiter import limiter, ONBOARDING_START_LIMIT, ONBOARDING_STEP_LIMIT
from onboarding_service.core.logger import log_request, log_response, log_error
from onboarding_service.models.account import Credentials
from onboarding_service.models.assessment import FitnessInput, PsychologicalInput
from onboarding_service.services.pipeline_registry import PipelineRegistry
from onboarding_service.services.remote_clients import OnboardingClients
from onboarding_service.services.report import format_plan_summary
from onboarding_service.services.stage_controller import OnboardingPipeline, StageSnapshot

router = APIRouter(prefix="/onboarding", dependencies=[Depends(verify_internal_secret)])


def get_registry(request: Request) -> PipelineRegistry:
    return request.app.state.pipelines


def get_clients() -> OnboardingClients:
    return OnboardingClients.from_settings()


def _require(registry: PipelineRegistry, session_id: str) -> OnboardingPipeline:
    pipeline = registry.get(session_id)
    if pipeline is None:
        raise HTTPException(status_code=404, detail="Onboarding session not found")
    return pipeline


def _snapshot_body(session_id: str, snapshot: StageSnapshot) -> dict:
    return {"status": "success", "sessionId": session_id, **asdict(snapshot)}


@router.post("", status_code=201)
@limiter.limit(ONBOARDING_START_LIMIT)
async def start_onboarding(
    request: Request,
    req: Credentials,
    registry: PipelineRegistry = Depends(get_registry),
    clients: OnboardingClients = Depends(get_clients),
):
    """
    Start an onboarding run.

    Checks that the username is free before any assessment is collected.
    """
    log_request("/onboarding")

    session_id, pipeline = registry.create(lambda: OnboardingPipeline(clients))
    try:
        snapshot = await pipeline.begin(req)
    except AvailabilityConflict as e:
        registry.discard(session_id)
        raise HTTPException(status_code=409, detail=str(e))
    except RemoteServiceError as e:
        registry.discard(session_id)
        log_error("Username availability check", e)
        raise HTTPException(status_code=503, detail="Failed to check username availability")
    except Exception as e:
        registry.discard(session_id)
        log_error("Onboarding start", e)
        raise HTTPException(status_code=500, detail="Failed to start onboarding")

    log_response("/onboarding", snapshot.stage.value)
    return _snapshot_body(session_id, snapshot)


@router.post("/{session_id}/fitness")
@limiter.limit(ONBOARDING_STEP_LIMIT)
async def submit_fitness(
    request: Request,
    session_id: str,
    req: FitnessInput,
    registry: PipelineRegistry = Depends(get_registry),
):
    """Store the fitness assessment round."""
    log_request("/onboarding/{session_id}/fitness")
    pipeline = _require(registry, session_id)

    try:
        snapshot = await pipeline.submit_fitness(req)
    except (StageOrderError, PipelineBusyError) as e:
        raise HTTPException(status_code=409, detail=str(e))

    return _snapshot_body(session_id, snapshot)


@router.post("/{session_id}/psychological")
@limiter.limit(ONBOARDING_STEP_LIMIT)
async def submit_psychological(
    request: Request,
    session_id: str,
    req: PsychologicalInput,
    registry: PipelineRegistry = Depends(get_registry),
):
    """
    Store the psychological round, then analyze, generate and register.

    On any remote failure the session is closed and everything entered so
    far is gone; the client must start again from POST /onboarding.
    """
    log_request("/onboarding/{session_id}/psychological")
    pipeline = _require(registry, session_id)

    try:
        outcome = await pipeline.submit_psychological(req)
    except (StageOrderError, PipelineBusyError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except TransformationInvariantViolation as e:
        registry.discard(session_id)
        log_error("Profile synthesis", e)
        raise HTTPException(status_code=500, detail="Failed to build account profile")
    except Exception as e:
        registry.discard(session_id)
        log_error("Onboarding pipeline", e)
        raise HTTPException(status_code=500, detail="Onboarding failed. Please start again.")

    if outcome.abandoned:
        raise HTTPException(status_code=409, detail="Onboarding session was abandoned")

    registry.discard(session_id)

    if not outcome.succeeded:
        log_response("/onboarding/{session_id}/psychological", outcome.failure_reason.value)
        raise HTTPException(
            status_code=502,
            detail={
                "status": "failed",
                "stage": outcome.failed_stage,
                "reason": outcome.failure_reason.value,
                "message": f"Onboarding failed during {outcome.failed_stage}. Please start again.",
            },
        )

    log_response("/onboarding/{session_id}/psychological", "complete")
    return {
        "status": "complete",
        "analysis": outcome.analysis.model_dump(),
        "workoutPlan": outcome.workout_plan.model_dump(),
        "account": outcome.account.model_dump(exclude={"password"}),
        "summary": format_plan_summary(outcome.analysis, outcome.workout_plan),
    }


@router.get("/{session_id}")
async def get_onboarding(session_id: str, registry: PipelineRegistry = Depends(get_registry)):
    """Current stage of an onboarding session."""
    pipeline = _require(registry, session_id)
    return _snapshot_body(session_id, pipeline.snapshot())


@router.delete("/{session_id}")
async def abandon_onboarding(session_id: str, registry: PipelineRegistry = Depends(get_registry)):
    """Abandon a session; an in-flight remote result will be discarded."""
    log_request("/onboarding/{session_id}", method="DELETE")
    _require(registry, session_id)
    registry.discard(session_id)
    return {"status": "abandoned", "sessionId": session_id}
