# 📄 File: lexcircle/shared/core/exceptions.py
# 🧭 Purpose (Layman Explanation):
# This file defines all the special error types LexCircle uses to communicate
# what went wrong in a clear, organized way instead of generic error messages.
# 🧪 Purpose (Technical Summary):
# Custom exception hierarchy providing specific error types with HTTP status codes,
# error details, and proper serialization for API responses and error handling.
# 🔗 Dependencies:
# FastAPI HTTP status constants, typing
# 🔄 Connected Modules / Calls From:
# Social graph service, user record store, API endpoints, exception handlers in main

from typing import Any, Dict, Optional
from fastapi import status


class LexCircleException(Exception):
    """
    Base exception class for the LexCircle application.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__.upper()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
                "status_code": self.status_code
            }
        }


# =============================================================================
# AUTHENTICATION & AUTHORIZATION EXCEPTIONS
# =============================================================================

class AuthenticationError(LexCircleException):
    """
    Exception raised for authentication failures.
    Used when user credentials are invalid or missing.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None
    ):
        if not details:
            details = {}
        if user_id:
            details["user_id"] = user_id

        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
            error_code="AUTHENTICATION_ERROR"
        )


class AuthorizationError(LexCircleException):
    """
    Exception raised for authorization failures.
    Used when user lacks permission to access resources.
    """

    def __init__(
        self,
        message: str = "Access denied",
        resource: Optional[str] = None,
        required_permission: Optional[str] = None,
        user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if resource:
            details["resource"] = resource
        if required_permission:
            details["required_permission"] = required_permission
        if user_id:
            details["user_id"] = user_id

        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
            error_code="AUTHORIZATION_ERROR"
        )


# =============================================================================
# RESOURCE EXCEPTIONS
# =============================================================================

class NotFoundError(LexCircleException):
    """
    Exception raised when requested resource is not found.
    """

    def __init__(
        self,
        message: str = "Resource not found",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            error_code="NOT_FOUND"
        )


class ConflictError(LexCircleException):
    """
    Exception raised for resource conflicts.
    Used when a relationship being created already exists.
    """

    def __init__(
        self,
        message: str = "Resource conflict",
        resource_type: Optional[str] = None,
        conflict_field: Optional[str] = None,
        existing_value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "CONFLICT"
    ):
        if not details:
            details = {}

        if resource_type:
            details["resource_type"] = resource_type
        if conflict_field:
            details["conflict_field"] = conflict_field
        if existing_value is not None:
            details["existing_value"] = str(existing_value)

        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            error_code=error_code
        )


class BusinessRuleViolationError(LexCircleException):
    """
    Exception raised when business rules are violated.
    Used for domain-specific rule enforcement.
    """

    def __init__(
        self,
        message: str = "Business rule violation",
        rule: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "BUSINESS_RULE_VIOLATION"
    ):
        if not details:
            details = {}

        if rule:
            details["rule"] = rule
        if context:
            details["context"] = context

        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            error_code=error_code
        )


# =============================================================================
# SOCIAL GRAPH EXCEPTIONS
# =============================================================================

class UserNotFoundError(NotFoundError):
    """Actor or target reference does not resolve to an existing user."""

    def __init__(self, user_ref: Optional[str] = None, message: str = "User not found"):
        super().__init__(
            message=message,
            resource_type="user",
            resource_id=str(user_ref) if user_ref is not None else None,
        )


class SelfReferenceError(BusinessRuleViolationError):
    """The operation target resolves to the acting user."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"You cannot {operation} yourself",
            rule="no_self_reference",
            context={"operation": operation},
            error_code="SELF_REFERENCE"
        )


class AlreadyFollowingError(ConflictError):
    def __init__(self, target_id: str):
        super().__init__(
            message="You are already following this user",
            resource_type="follow",
            conflict_field="following",
            existing_value=target_id,
            error_code="ALREADY_FOLLOWING"
        )


class NotFollowingError(BusinessRuleViolationError):
    def __init__(self, target_id: str):
        super().__init__(
            message="You are not following this user",
            rule="must_follow_before_unfollow",
            context={"target_id": target_id},
            error_code="NOT_FOLLOWING"
        )


class AlreadyBlockedError(ConflictError):
    def __init__(self, target_id: str):
        super().__init__(
            message="User is already blocked",
            resource_type="block",
            conflict_field="blocked_users",
            existing_value=target_id,
            error_code="ALREADY_BLOCKED"
        )


class NotBlockedError(BusinessRuleViolationError):
    def __init__(self, target_id: str):
        super().__init__(
            message="User is not blocked",
            rule="must_block_before_unblock",
            context={"target_id": target_id},
            error_code="NOT_BLOCKED"
        )


class BlockedRelationshipError(BusinessRuleViolationError):
    """The actor has blocked the target; the block must be lifted before following."""

    def __init__(self, target_id: str):
        super().__init__(
            message="You have blocked this user",
            rule="no_follow_while_blocked",
            context={"target_id": target_id},
            error_code="USER_BLOCKED"
        )


# =============================================================================
# PERSISTENCE EXCEPTIONS
# =============================================================================

class RepositoryError(LexCircleException):
    """
    Exception raised for repository/database operation failures.
    Used when database operations fail at the repository layer.
    """

    def __init__(
        self,
        message: str = "Repository operation failed",
        operation: Optional[str] = None,
        entity: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "REPOSITORY_ERROR"
    ):
        if not details:
            details = {}

        if operation:
            details["operation"] = operation
        if entity:
            details["entity"] = entity

        super().__init__(
            message=message,
            status_code=status_code,
            details=details,
            error_code=error_code
        )


class StoreFailureError(RepositoryError):
    """
    The user record store could not complete a read or write.

    Surfaced as a transient, retryable failure. When raised by the second
    write of a paired graph mutation the first write is not rolled back.
    """

    def __init__(
        self,
        message: str = "User record store is temporarily unavailable",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        details.setdefault("retryable", True)

        super().__init__(
            message=message,
            operation=operation,
            entity="user_record",
            details=details,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="STORE_FAILURE"
        )


class DatabaseError(LexCircleException):
    """Exception raised when the database layer cannot be initialized or used."""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            error_code="DATABASE_ERROR"
        )
