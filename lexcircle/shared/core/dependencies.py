"""
Common FastAPI dependencies for the LexCircle service.
Provides the authenticated caller and role-based authorization guards.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends, Request

from .exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


class CurrentUser:
    """User information extracted from JWT token."""

    def __init__(
        self,
        user_id: str,
        roles: Optional[List[str]] = None,
        token_payload: Optional[Dict[str, Any]] = None
    ):
        self.user_id = user_id
        self.roles = roles or ["user"]
        self.token_payload = token_payload or {}

    def has_role(self, role: str) -> bool:
        """Check if user has specific role."""
        return role in self.roles

    def is_admin(self) -> bool:
        """Check if user has admin privileges."""
        return self.has_role("admin")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "roles": self.roles
        }


async def get_current_user(request: Request) -> CurrentUser:
    """
    Get current authenticated user from request state.
    This dependency assumes AuthenticationMiddleware has already validated the token.

    Args:
        request: FastAPI request object

    Returns:
        CurrentUser: Current user information

    Raises:
        AuthenticationError: If user is not authenticated
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        logger.warning("User ID not found in request state")
        raise AuthenticationError("User not authenticated")

    return CurrentUser(
        user_id=user_id,
        roles=getattr(request.state, "user_roles", ["user"]),
        token_payload=getattr(request.state, "token_payload", {})
    )


async def get_current_admin_user(
    current_user: CurrentUser = Depends(get_current_user)
) -> CurrentUser:
    """
    Get current user with admin privileges.

    Args:
        current_user: Current authenticated user

    Returns:
        CurrentUser: Admin user information

    Raises:
        AuthorizationError: If user is not an admin
    """
    if not current_user.is_admin():
        logger.warning(f"Non-admin user attempted admin access: {current_user.user_id}")
        raise AuthorizationError(
            "Admin privileges required for this action",
            required_permission="admin",
            user_id=current_user.user_id
        )

    return current_user
