# 📄 File: lexcircle/api/v1/router.py
# 🧭 Purpose (Layman Explanation):
# Directs every version 1 request to the right handler: follows and blocks to the social graph,
# repair tools to the admin section.
# 🧪 Purpose (Technical Summary):
# API v1 router aggregation combining the social graph module routers.
# 🔗 Dependencies:
# FastAPI, lexcircle.modules.social_graph.presentation.api.v1.*
# 🔄 Connected Modules / Calls From:
# lexcircle.main

import logging

from fastapi import APIRouter

from lexcircle.modules.social_graph.presentation.api.v1.admin import admin_router
from lexcircle.modules.social_graph.presentation.api.v1.subscriptions import (
    subscriptions_router,
    user_graph_router,
)

logger = logging.getLogger(__name__)

api_v1_router = APIRouter()

# =========================================================================
# SOCIAL GRAPH MODULE
# =========================================================================

api_v1_router.include_router(subscriptions_router)
api_v1_router.include_router(user_graph_router)
api_v1_router.include_router(admin_router)


@api_v1_router.get("/", summary="API v1 Information", tags=["API Info"])
async def api_v1_info() -> dict:
    return {
        "version": "v1",
        "modules": ["subscriptions", "users", "admin"],
        "documentation": {"openapi_schema": "/openapi.json", "swagger_ui": "/docs"},
    }
