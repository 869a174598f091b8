"""
FitCoach Onboarding Service - Main Entry Point

Orchestrates the onboarding assessments, profile synthesis and account
registration against the remote onboarding API.
"""
import os
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from onboarding_service.core.config import settings
from onboarding_service.core.logger import logger
from onboarding_service.core.limiter import limiter
from onboarding_service.routes import onboarding
from onboarding_service.services.pipeline_registry import PipelineRegistry


# Validate configuration on startup
try:
    settings.validate()
    logger.info("Configuration validated successfully")
except ValueError as e:
    logger.error(f"Configuration error: {e}")
    raise


# Create FastAPI app
app = FastAPI(
    title="FitCoach Onboarding Service",
    description="Onboarding assessment orchestration and account profile synthesis",
    version="1.0.0"
)

# Attach rate limiter and its error handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Live onboarding sessions for this process
app.state.pipelines = PipelineRegistry()

app.include_router(onboarding.router, tags=["Onboarding"])


@app.get("/")
@limiter.limit("60/minute")
def root(request: Request):
    """Health check endpoint."""
    return {"message": "FitCoach Onboarding Service running"}


@app.get("/health")
def health():
    """
    Detailed health status.
    Returns 'degraded' if required environment variables are missing.
    """
    required_vars = ["ONBOARDING_API_BASE_URL", "INTERNAL_API_SECRET"]
    missing = [v for v in required_vars if not os.environ.get(v)]

    if missing:
        return JSONResponse(
            status_code=200,
            content={
                "status": "degraded",
                "service": "onboarding-service",
                "version": "1.0.0",
                "missing_config": missing,
                "message": f"Missing required environment variables: {', '.join(missing)}"
            }
        )

    return {
        "status": "healthy",
        "service": "onboarding-service",
        "version": "1.0.0",
        "activeSessions": len(app.state.pipelines)
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "onboarding_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False
    )
