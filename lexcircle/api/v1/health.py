# 📄 File: lexcircle/api/v1/health.py
# 🧭 Purpose (Layman Explanation):
# Simple check-up endpoints that tell load balancers whether LexCircle is alive and whether
# it can reach its database.
# 🧪 Purpose (Technical Summary):
# Liveness and readiness probes. Readiness reports 503 when the database health check fails.
# 🔗 Dependencies:
# FastAPI, lexcircle.shared.infrastructure.database.connection
# 🔄 Connected Modules / Calls From:
# lexcircle.api.v1.router, lexcircle.main, monitoring systems, load balancers

import logging
from datetime import datetime

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from lexcircle.shared.config.settings import get_settings
from lexcircle.shared.infrastructure.database.connection import database_health_check as db_health_check

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("/health",
                   summary="Basic Health Check",
                   description="Basic health check endpoint for load balancers and monitoring",
                   tags=["Health Check"])
async def health_check() -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "service": "lexcircle-api",
            "version": get_settings().APP_VERSION
        }
    )


@health_router.get("/health/live",
                   summary="Liveness Probe",
                   tags=["Health Check"])
async def liveness_probe() -> Response:
    return Response(status_code=200, content="OK")


@health_router.get("/health/ready",
                   summary="Readiness Probe",
                   description="Ready when the database answers the health query",
                   tags=["Health Check"])
async def readiness_probe() -> JSONResponse:
    """
    Readiness probe.

    Returns 200 when the database is reachable, 503 otherwise.
    """
    try:
        db_health = await db_health_check()

        if db_health["status"] == "healthy":
            return JSONResponse(
                status_code=200,
                content={"status": "ready", "timestamp": datetime.now().isoformat()}
            )
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "reason": "database_unhealthy",
                "timestamp": datetime.now().isoformat()
            }
        )

    except Exception as e:
        logger.error(f"Readiness probe failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "reason": str(e),
                "timestamp": datetime.now().isoformat()
            }
        )
