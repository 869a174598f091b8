"""
Internal API authentication dependency.

The onboarding endpoints are called by the web app's backend, never
directly from the browser. Each request carries the shared secret:

    X-Internal-Secret: <INTERNAL_API_SECRET>

Requests without it (or with the wrong value) get 403; if the secret is
not configured at all, every request gets 503.
"""
import hmac
from typing import Annotated

from fastapi import Header, HTTPException

from onboarding_service.core.config import settings


def verify_internal_secret(x_internal_secret: Annotated[str, Header()] = "") -> None:
    """FastAPI dependency - validates the shared internal secret header."""
    secret = settings.INTERNAL_API_SECRET
    if not secret:
        raise HTTPException(
            status_code=503,
            detail="Service not configured (INTERNAL_API_SECRET not set)"
        )
    if not hmac.compare_digest(x_internal_secret.encode(), secret.encode()):
        raise HTTPException(
            status_code=403,
            detail="Forbidden: invalid or missing internal secret"
        )
