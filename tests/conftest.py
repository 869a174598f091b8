"""
Pytest fixtures for the FitCoach Onboarding Service tests.
"""
import json
import os

import httpx
import pytest
from fastapi.testclient import TestClient

# Mock environment variables before importing app
os.environ.setdefault("ONBOARDING_API_BASE_URL", "http://onboarding.test/api")
os.environ.setdefault("INTERNAL_API_SECRET", "test-secret")

from onboarding_service.core.config import settings
from onboarding_service.core.limiter import limiter
from onboarding_service.main import app
from onboarding_service.routes.onboarding import get_clients
from onboarding_service.services.remote_clients import OnboardingClients


class FakeOnboardingAPI:
    """
    Canned responses for the remote onboarding endpoints.

    Each endpoint maps to (status, body), a ready httpx.Response, an httpx
    exception to raise, or a list of those consumed one per call (the last
    one repeats).
    """

    def __init__(self, responses: dict):
        self.responses = dict(responses)
        self.requests: list[tuple[str, dict]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        self.requests.append((path, json.loads(request.content)))

        response = self.responses[path]
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        status, body = response
        return httpx.Response(status, json=body)

    def clients(self) -> OnboardingClients:
        return OnboardingClients.from_settings(transport=httpx.MockTransport(self.handler))

    @property
    def paths(self) -> list[str]:
        return [path for path, _ in self.requests]

    def body_for(self, path: str) -> dict:
        return next(body for p, body in self.requests if p == path)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"X-Internal-Secret": settings.INTERNAL_API_SECRET}


@pytest.fixture
def sample_credentials():
    return {"username": "alex", "password": "s3cret-pass"}


@pytest.fixture
def sample_fitness_input():
    """Fitness round for the 'alex' scenario."""
    return {
        "basicInfo": {
            "age": 30,
            "gender": "male",
            "heightFeet": 5,
            "heightInches": 10,
            "weight": "180"
        },
        "fitnessProfile": {
            "fitnessGoal": "muscle_gain",
            "experienceLevel": "intermediate",
            "currentActivityLevel": "moderately_active",
            "workoutPreferences": ["Strength Training"]
        },
        "lifestyle": {
            "timeCommitment": "3-4_hours",
            "occupationType": "sedentary",
            "workSchedule": "regular",
            "sleepQuality": "good",
            "stressLevel": "moderate"
        }
    }


@pytest.fixture
def sample_psychological_input():
    """Psychological round with readinessScore 7 and one barrier."""
    return {
        "emotionalDrivers": {
            "current": ["Frustrated", "Hopeful"],
            "desired": ["Strong", "Confident"],
            "impact": 8
        },
        "personalVision": {
            "oneYearGoal": "Deadlift twice my bodyweight",
            "visionSatisfaction": 9
        },
        "readinessAssessment": {
            "narrative": "I have tried before but never stuck with it.",
            "efficacyBeliefs": "I can do it with a plan.",
            "motivations": "Feel stronger and sleep better.",
            "challenges": "Long work days.",
            "readinessScore": 7,
            "barriers": ["time management"],
            "supportSystem": ["partner"]
        }
    }


@pytest.fixture
def sample_analysis_response():
    """Analysis result with a 72/100 readiness score."""
    return {
        "motivationAnalysis": {
            "underlyingMotivations": ["health", "confidence"],
            "readinessScore": 72,
            "analysisFactors": {
                "motivation": 80,
                "commitment": 70,
                "fitnessLevel": 65,
                "lifestyle": 60,
                "narrativeFactor": 75
            }
        },
        "milestones": {
            "shortTerm": ["Train 3x per week"],
            "midTerm": ["Add 20kg to squat"],
            "longTerm": ["Compete in a local meet"],
            "explanation": "Progressive strength blocks."
        },
        "successPrediction": {
            "successProbability": 78,
            "confidenceScore": 70,
            "keyFactors": ["prior experience"],
            "recommendations": ["Schedule sessions in advance"]
        },
        "timelinePrediction": {
            "estimatedWeeks": 24,
            "confidenceScore": 65,
            "keyFactors": ["time commitment"],
            "recommendations": ["Track lifts weekly"]
        }
    }


@pytest.fixture
def sample_workout_response():
    """Workout plan response."""
    return {
        "message": "Three full-body strength sessions per week.",
        "biology": "Compound lifts drive hypertrophy.",
        "psychology": "Short sessions lower the barrier to start.",
        "suggestions": ["Book your first session", "Buy a training log"]
    }


@pytest.fixture
def remote_api(sample_analysis_response, sample_workout_response):
    """Remote API where every endpoint succeeds."""
    return FakeOnboardingAPI({
        "/check-availability": (200, {"available": True}),
        "/analyze-assessment": (200, sample_analysis_response),
        "/generate-workout": (200, sample_workout_response),
        "/register": (201, {"id": 1, "username": "alex"}),
    })


@pytest.fixture
def api_client(client, remote_api):
    """Test client whose pipelines talk to remote_api."""
    app.dependency_overrides[get_clients] = remote_api.clients
    yield client
    app.dependency_overrides.pop(get_clients, None)


@pytest.fixture
def transport_for():
    """Build a MockTransport serving one endpoint: (api, transport)."""
    def _build(path: str, response):
        api = FakeOnboardingAPI({path: response})
        return api, httpx.MockTransport(api.handler)
    return _build
