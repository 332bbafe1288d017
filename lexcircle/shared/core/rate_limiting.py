"""
Shared slowapi limiter for LexCircle endpoints.
Registered on the application in lexcircle.main so that RateLimitExceeded
responses carry the standard headers.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config.settings import get_settings

settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.RATE_LIMIT_ENABLED,
)
