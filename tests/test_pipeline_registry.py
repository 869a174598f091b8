"""
Tests for the in-process onboarding session registry.
"""
import asyncio

import pytest

from onboarding_service.services.pipeline_registry import PipelineRegistry
from onboarding_service.services.stage_controller import OnboardingPipeline, Stage


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class StubPipeline:
    """Stands in for a pipeline; busy means waiting on a remote call."""

    run_id = "stub"

    def __init__(self, busy=False):
        self.busy = busy
        self.abandoned = False

    def abandon(self):
        self.abandoned = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return PipelineRegistry(ttl_seconds=60, clock=clock)


class TestPipelineRegistry:
    """Tests for session lookup and expiry."""

    def test_create_and_get(self, registry, remote_api):
        """Test that a created session can be looked up by its id."""
        session_id, pipeline = registry.create(lambda: OnboardingPipeline(remote_api.clients()))

        assert registry.get(session_id) is pipeline
        assert session_id in registry
        assert len(registry) == 1

    def test_discard_abandons_pipeline(self, registry, remote_api, sample_credentials):
        """Test that discarding a session drops it and resets its pipeline."""
        session_id, pipeline = registry.create(lambda: OnboardingPipeline(remote_api.clients()))
        asyncio.run(pipeline.begin(sample_credentials))

        registry.discard(session_id)

        assert registry.get(session_id) is None
        assert pipeline.stage is Stage.IDLE
        assert not pipeline.snapshot().has_credentials

    def test_idle_sessions_expire(self, registry, clock, remote_api, sample_credentials):
        """Test that sessions left alone past the TTL are dropped along with their data."""
        abandoned = []
        for _ in range(5):
            _, pipeline = registry.create(lambda: OnboardingPipeline(remote_api.clients()))
            asyncio.run(pipeline.begin(sample_credentials))
            abandoned.append(pipeline)

        clock.advance(61)

        assert registry.expire() == 5
        assert len(registry) == 0
        assert all(not p.snapshot().has_credentials for p in abandoned)

    def test_create_sweeps_expired_sessions(self, registry, clock, remote_api):
        """Test that opening a new session clears out expired ones."""
        old_id, _ = registry.create(lambda: OnboardingPipeline(remote_api.clients()))
        clock.advance(61)

        new_id, _ = registry.create(lambda: OnboardingPipeline(remote_api.clients()))

        assert old_id not in registry
        assert new_id in registry

    def test_access_keeps_session_alive(self, registry, clock, remote_api):
        """Test that each lookup restarts the idle timer."""
        session_id, _ = registry.create(lambda: OnboardingPipeline(remote_api.clients()))

        clock.advance(45)
        assert registry.get(session_id) is not None
        clock.advance(45)

        assert registry.get(session_id) is not None

    def test_expired_session_is_not_found(self, registry, clock, remote_api):
        """Test that a lookup after the TTL misses."""
        session_id, _ = registry.create(lambda: OnboardingPipeline(remote_api.clients()))
        clock.advance(60)

        assert registry.get(session_id) is None

    def test_busy_pipeline_is_not_expired(self, registry, clock):
        """Test that a pipeline waiting on a remote call survives the sweep."""
        busy = StubPipeline(busy=True)
        session_id, _ = registry.create(lambda: busy)
        clock.advance(120)

        assert registry.expire() == 0
        assert session_id in registry
        assert not busy.abandoned

    def test_ttl_defaults_to_settings(self, monkeypatch):
        """Test that the TTL comes from SESSION_TTL_SECONDS when not given."""
        from onboarding_service.core.config import settings

        monkeypatch.setattr(settings, "SESSION_TTL_SECONDS", 5)
        clock = FakeClock()
        registry = PipelineRegistry(clock=clock)
        session_id, _ = registry.create(StubPipeline)

        clock.advance(5)

        assert registry.get(session_id) is None
