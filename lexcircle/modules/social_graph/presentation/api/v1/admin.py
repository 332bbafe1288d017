# 📄 File: lexcircle/modules/social_graph/presentation/api/v1/admin.py
#
# 🧭 Purpose (Layman Explanation):
# Tools for administrators to fix wrong follower numbers and clean up follow lists that point
# at deleted accounts.
#
# 🧪 Purpose (Technical Summary):
# Admin-only FastAPI endpoints for the graph repair procedures: full repair, quick
# counters-only repair and single-user counter sync. Both repair variants require the admin
# role.
#
# 🔗 Dependencies:
# - FastAPI router, slowapi limiter
# - lexcircle.shared.core.dependencies.get_current_admin_user
# - lexcircle.modules.social_graph.presentation.dependencies
#
# 🔄 Connected Modules / Calls From:
# - lexcircle.api.v1.router (router inclusion)

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from lexcircle.modules.social_graph.domain.services.subscription_graph_service import (
    SubscriptionGraphService,
)
from lexcircle.modules.social_graph.presentation.api.schemas.graph_schemas import (
    QuickRepairReportResponse,
    RepairReportResponse,
    SyncCountersResponse,
)
from lexcircle.modules.social_graph.presentation.dependencies import get_subscription_graph_service
from lexcircle.shared.config.settings import get_settings
from lexcircle.shared.core.dependencies import CurrentUser, get_current_admin_user
from lexcircle.shared.core.rate_limiting import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

_ADMIN_ERRORS = {
    401: {"description": "Authentication required"},
    403: {"description": "Admin privileges required"},
    503: {"description": "Store temporarily unavailable, retry later"},
}


@admin_router.post(
    "/repair-subscription-counters",
    response_model=RepairReportResponse,
    summary="Repair subscription counters",
    description=(
        "Scan every user, remove references to users that no longer exist and "
        "rewrite follower / following counters that do not match the stored lists."
    ),
    responses=_ADMIN_ERRORS,
)
@limiter.limit(settings.RATE_LIMIT_ADMIN_REPAIR)
async def repair_subscription_counters(
    request: Request,
    admin: CurrentUser = Depends(get_current_admin_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> RepairReportResponse:
    logger.info(f"Full subscription repair requested by admin {admin.user_id}")
    report = await service.repair_counters()
    return RepairReportResponse(message="Subscription counter repair completed", stats=report)


@admin_router.post(
    "/quick-repair-counters",
    response_model=QuickRepairReportResponse,
    summary="Quick counter repair",
    description="Recompute counters from the stored lists without checking referenced users.",
    responses=_ADMIN_ERRORS,
)
@limiter.limit(settings.RATE_LIMIT_ADMIN_REPAIR)
async def quick_repair_counters(
    request: Request,
    limit: Optional[int] = Query(default=None, ge=1, description="Maximum number of users to inspect"),
    admin: CurrentUser = Depends(get_current_admin_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> QuickRepairReportResponse:
    logger.info(f"Quick counter repair requested by admin {admin.user_id} (limit={limit})")
    report = await service.quick_repair_counters(limit)
    return QuickRepairReportResponse(message="Quick counter repair completed", stats=report)


@admin_router.post(
    "/users/{user_ref}/sync-counters",
    response_model=SyncCountersResponse,
    summary="Sync one user's counters",
    responses={**_ADMIN_ERRORS, 404: {"description": "User not found"}},
)
async def sync_user_counters(
    user_ref: str,
    admin: CurrentUser = Depends(get_current_admin_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> SyncCountersResponse:
    changed = await service.sync_user_counters(user_ref)
    return SyncCountersResponse(
        message="Counters updated" if changed else "Counters already correct",
        user_id=user_ref,
        changed=changed,
    )
