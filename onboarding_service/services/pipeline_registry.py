"""
In-process registry of live onboarding pipelines, keyed by session id.

Held on app.state; each entry is an independent OnboardingPipeline. Sessions
left idle for longer than SESSION_TTL_SECONDS are abandoned and dropped the
next time the registry is used.
"""
import secrets
import time
from typing import Callable, Optional

from onboarding_service.core.config import settings
from onboarding_service.core.logger import logger
from onboarding_service.services.stage_controller import OnboardingPipeline


class PipelineRegistry:
    """Maps opaque session ids to pipelines."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = settings.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._pipelines: dict[str, OnboardingPipeline] = {}
        self._last_seen: dict[str, float] = {}

    def create(self, factory: Callable[[], OnboardingPipeline]) -> tuple[str, OnboardingPipeline]:
        self.expire()
        session_id = secrets.token_urlsafe(16)
        pipeline = factory()
        self._pipelines[session_id] = pipeline
        self._last_seen[session_id] = self._clock()
        logger.info(f"Opened onboarding session for pipeline {pipeline.run_id}")
        return session_id, pipeline

    def get(self, session_id: str) -> Optional[OnboardingPipeline]:
        self.expire()
        pipeline = self._pipelines.get(session_id)
        if pipeline is not None:
            self._last_seen[session_id] = self._clock()
        return pipeline

    def expire(self) -> int:
        """Drop sessions idle past the TTL. Pipelines waiting on a remote call are kept."""
        cutoff = self._clock() - self._ttl
        stale = [
            session_id
            for session_id, seen in self._last_seen.items()
            if seen <= cutoff and not self._pipelines[session_id].busy
        ]
        for session_id in stale:
            logger.info(f"Expiring idle onboarding session for pipeline {self._pipelines[session_id].run_id}")
            self.discard(session_id)
        return len(stale)

    def discard(self, session_id: str) -> None:
        pipeline = self._pipelines.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if pipeline is not None:
            pipeline.abandon()
            logger.info(f"Closed onboarding session for pipeline {pipeline.run_id}")

    def __len__(self) -> int:
        return len(self._pipelines)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._pipelines
