"""
Core application components: exception hierarchy, JWT security,
FastAPI dependencies and the shared rate limiter.
"""

from .exceptions import (
    AlreadyBlockedError,
    AlreadyFollowingError,
    AuthenticationError,
    AuthorizationError,
    BlockedRelationshipError,
    LexCircleException,
    NotBlockedError,
    NotFollowingError,
    SelfReferenceError,
    StoreFailureError,
    UserNotFoundError,
)

__all__ = [
    "LexCircleException",
    "AuthenticationError",
    "AuthorizationError",
    "UserNotFoundError",
    "SelfReferenceError",
    "AlreadyFollowingError",
    "NotFollowingError",
    "AlreadyBlockedError",
    "NotBlockedError",
    "BlockedRelationshipError",
    "StoreFailureError",
]
