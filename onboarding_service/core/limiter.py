"""
Rate limiter configuration.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

# Each onboarding run fans out to three paid remote calls
ONBOARDING_START_LIMIT = "10/minute"
ONBOARDING_STEP_LIMIT = "30/minute"

# Rate limiter - uses client IP as key
limiter = Limiter(key_func=get_remote_address)
