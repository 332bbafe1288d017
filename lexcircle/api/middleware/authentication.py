# 📄 File: lexcircle/api/middleware/authentication.py
# 🧭 Purpose (Layman Explanation):
# A security guard that checks each member's access pass (token) before letting them follow,
# block or look at other members' connections.
# 🧪 Purpose (Technical Summary):
# Authentication middleware that validates bearer JWT access tokens and injects the caller's
# id, roles and token payload into request state. Role checks happen in the route
# dependencies (lexcircle.shared.core.dependencies).
# 🔗 Dependencies:
# Starlette BaseHTTPMiddleware, lexcircle.shared.core.security, lexcircle.shared.utils.logging
# 🔄 Connected Modules / Calls From:
# lexcircle.main (middleware registration), all protected API endpoints

import logging
from datetime import datetime
from typing import Optional
from uuid import uuid4

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from lexcircle.shared.core.exceptions import AuthenticationError
from lexcircle.shared.core.security import verify_token
from lexcircle.shared.utils.logging import log_context

logger = logging.getLogger(__name__)


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Authentication middleware for JWT token validation

    This middleware:
    - Reads the bearer token from the Authorization header
    - Rejects protected requests without a valid access token
    - Stores user_id, user_roles and token_payload on request.state
    - Binds request and user ids to the logging context
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

        # Paths that don't require authentication
        self.public_paths = [
            "/",
            "/health",
            "/health/live",
            "/health/ready",
            "/docs",
            "/redoc",
            "/openapi.json",
            "/api/v1/",
        ]

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        if self._is_public_path(request.url.path):
            with log_context(request_id=request_id):
                response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        token = self._extract_token(request)
        if not token:
            return self._create_authentication_error("No authentication token provided", request_id)

        try:
            payload = verify_token(token)
        except AuthenticationError as e:
            return self._create_authentication_error(e.message, request_id)

        request.state.user_id = payload["sub"]
        request.state.user_roles = payload.get("roles") or ["user"]
        request.state.token_payload = payload

        with log_context(request_id=request_id, user_id=payload["sub"]):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response

    def _extract_token(self, request: Request) -> Optional[str]:
        authorization = request.headers.get("Authorization")
        if authorization:
            try:
                scheme, token = authorization.split()
                if scheme.lower() == "bearer":
                    return token
            except ValueError:
                pass
        return None

    def _is_public_path(self, path: str) -> bool:
        if path in self.public_paths:
            return True

        return any(
            path.startswith(public_path.rstrip("/") + "/")
            for public_path in self.public_paths
            if public_path not in ("/", "/api/v1/")
        )

    def _create_authentication_error(self, message: str, request_id: str) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={
                "error": {
                    "code": "AUTHENTICATION_REQUIRED",
                    "message": message,
                    "details": {"auth_methods": ["Bearer token"]},
                    "timestamp": datetime.now().isoformat(),
                    "request_id": request_id,
                }
            },
            headers={"WWW-Authenticate": "Bearer"}
        )
