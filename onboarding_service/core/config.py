"""
Configuration and constants for the FitCoach Onboarding Service.
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Remote onboarding API (availability, analysis, workout, registration)
    ONBOARDING_API_BASE_URL: str = os.getenv("ONBOARDING_API_BASE_URL", "")
    CHECK_AVAILABILITY_PATH: str = "/check-availability"
    ANALYZE_ASSESSMENT_PATH: str = "/analyze-assessment"
    GENERATE_WORKOUT_PATH: str = "/generate-workout"
    REGISTER_PATH: str = "/register"

    # Request Configuration
    REMOTE_TIMEOUT: float = float(os.getenv("REMOTE_TIMEOUT", 60))
    REMOTE_CONNECT_TIMEOUT: float = float(os.getenv("REMOTE_CONNECT_TIMEOUT", 10))

    # 1 = first failure is terminal for the run (full rollback)
    STAGE_RETRY_ATTEMPTS: int = int(os.getenv("STAGE_RETRY_ATTEMPTS", 1))

    # Idle onboarding sessions are dropped after this long
    SESSION_TTL_SECONDS: float = float(os.getenv("SESSION_TTL_SECONDS", 1800))

    # Internal auth
    INTERNAL_API_SECRET: str = os.getenv("INTERNAL_API_SECRET", "")

    # Server Configuration
    PORT: int = int(os.getenv("PORT", 10000))
    HOST: str = "0.0.0.0"

    # Account record defaults. Not collected by any assessment step yet;
    # pending product confirmation.
    DEFAULT_PAST_ATTEMPTS: int = 0
    DEFAULT_DIETARY_PREFERENCES: str = "balanced"
    DEFAULT_SUPPLEMENT_PREFERENCES: str = "none"
    DEFAULT_INJURIES: str | None = None
    DEFAULT_MEDICAL_CONDITIONS: str | None = None
    DEFAULT_ADDITIONAL_NOTES: str | None = None

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration on startup."""
        missing = []

        if not cls.ONBOARDING_API_BASE_URL:
            missing.append("ONBOARDING_API_BASE_URL")

        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Please check your .env file."
            )

        if not cls.ONBOARDING_API_BASE_URL.startswith(("http://", "https://")):
            raise ValueError("ONBOARDING_API_BASE_URL must be an http(s) URL")

        if cls.STAGE_RETRY_ATTEMPTS < 1:
            raise ValueError("STAGE_RETRY_ATTEMPTS must be at least 1")

        if cls.SESSION_TTL_SECONDS <= 0:
            raise ValueError("SESSION_TTL_SECONDS must be positive")


settings = Settings()
