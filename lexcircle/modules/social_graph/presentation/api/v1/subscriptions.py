# 📄 File: lexcircle/modules/social_graph/presentation/api/v1/subscriptions.py
#
# 🧭 Purpose (Layman Explanation):
# The web addresses members use to follow, unfollow, block and unblock each other, and to
# see who follows whom.
#
# 🧪 Purpose (Technical Summary):
# FastAPI endpoints translating HTTP calls into SubscriptionGraphService operations. Targets
# are passed as an id or a username in the path; domain errors are rendered by the
# LexCircleException handler registered in lexcircle.main.
#
# 🔗 Dependencies:
# - FastAPI router, slowapi limiter
# - lexcircle.modules.social_graph.presentation.dependencies (service wiring)
# - lexcircle.shared.core.dependencies (authenticated caller)
#
# 🔄 Connected Modules / Calls From:
# - lexcircle.api.v1.router (router inclusion)

"""
Subscriptions API Endpoints

Current user (/subscriptions):
- GET    /                          : following + followers with counters
- GET    /followers, /following, /connections
- POST   /follow/{target_ref}       : follow a member
- DELETE /follow/{target_ref}       : unfollow a member
- GET    /is-following/{target_ref}
- GET    /blocked
- POST   /block/{target_ref}        : block a member (severs follows both ways)
- DELETE /block/{target_ref}        : unblock a member
- GET    /is-blocked/{target_ref}

Any member (/users/{user_ref}):
- GET /followers, /following, /connections, /counts
"""

import logging

from fastapi import APIRouter, Depends, Request

from lexcircle.modules.social_graph.domain.services.subscription_graph_service import (
    SubscriptionGraphService,
)
from lexcircle.modules.social_graph.presentation.api.schemas.graph_schemas import (
    CountsResponse,
    FollowResponse,
    MessageResponse,
    ProfileListResponse,
    PublicProfileResponse,
    RelationStatusResponse,
    SubscriptionSummaryResponse,
    UnfollowResponse,
)
from lexcircle.modules.social_graph.presentation.dependencies import get_subscription_graph_service
from lexcircle.shared.config.settings import get_settings
from lexcircle.shared.core.dependencies import CurrentUser, get_current_user
from lexcircle.shared.core.rate_limiting import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

subscriptions_router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])
user_graph_router = APIRouter(prefix="/users", tags=["Social Graph"])

_COMMON_ERRORS = {
    401: {"description": "Authentication required"},
    404: {"description": "User not found"},
    503: {"description": "Store temporarily unavailable, retry later"},
}


# =========================================================================
# CURRENT USER
# =========================================================================

@subscriptions_router.get(
    "",
    response_model=SubscriptionSummaryResponse,
    summary="Get my subscriptions",
    responses=_COMMON_ERRORS,
)
async def get_my_subscriptions(
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> SubscriptionSummaryResponse:
    summary = await service.get_subscription_summary(current_user.user_id)
    return SubscriptionSummaryResponse.from_domain(summary)


@subscriptions_router.get("/followers", response_model=ProfileListResponse, responses=_COMMON_ERRORS)
async def get_my_followers(
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> ProfileListResponse:
    return ProfileListResponse.from_profiles(await service.get_followers(current_user.user_id))


@subscriptions_router.get("/following", response_model=ProfileListResponse, responses=_COMMON_ERRORS)
async def get_my_following(
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> ProfileListResponse:
    return ProfileListResponse.from_profiles(await service.get_following(current_user.user_id))


@subscriptions_router.get("/connections", response_model=ProfileListResponse, responses=_COMMON_ERRORS)
async def get_my_connections(
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> ProfileListResponse:
    return ProfileListResponse.from_profiles(await service.get_connections(current_user.user_id))


@subscriptions_router.post(
    "/follow/{target_ref}",
    response_model=FollowResponse,
    summary="Follow a member",
    description="Follow a member by id or username. The member receives a notification.",
    responses={
        **_COMMON_ERRORS,
        400: {"description": "Cannot follow yourself"},
        409: {"description": "Already following"},
    },
)
@limiter.limit(settings.RATE_LIMIT_GRAPH_MUTATIONS)
async def follow_user(
    request: Request,
    target_ref: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> FollowResponse:
    result = await service.follow(current_user.user_id, target_ref)
    return FollowResponse(
        message="User followed successfully",
        user=PublicProfileResponse.from_domain(result.target),
        notification_sent=result.notification_sent,
    )


@subscriptions_router.delete(
    "/follow/{target_ref}",
    response_model=UnfollowResponse,
    summary="Unfollow a member",
    responses={**_COMMON_ERRORS, 400: {"description": "Not following or self reference"}},
)
@limiter.limit(settings.RATE_LIMIT_GRAPH_MUTATIONS)
async def unfollow_user(
    request: Request,
    target_ref: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> UnfollowResponse:
    result = await service.unfollow(current_user.user_id, target_ref)
    return UnfollowResponse(
        message="User unfollowed successfully",
        user=PublicProfileResponse.from_domain(result.target),
    )


@subscriptions_router.get("/is-following/{target_ref}", response_model=RelationStatusResponse)
async def check_following(
    target_ref: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> RelationStatusResponse:
    return RelationStatusResponse(
        is_following=await service.is_following(current_user.user_id, target_ref)
    )


@subscriptions_router.get("/blocked", response_model=ProfileListResponse, responses=_COMMON_ERRORS)
async def get_blocked_users(
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> ProfileListResponse:
    return ProfileListResponse.from_profiles(await service.get_blocked_users(current_user.user_id))


@subscriptions_router.post(
    "/block/{target_ref}",
    response_model=MessageResponse,
    summary="Block a member",
    description="Block a member and remove any follow relationship between you, in both directions.",
    responses={
        **_COMMON_ERRORS,
        400: {"description": "Cannot block yourself"},
        409: {"description": "Already blocked"},
    },
)
@limiter.limit(settings.RATE_LIMIT_GRAPH_MUTATIONS)
async def block_user(
    request: Request,
    target_ref: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> MessageResponse:
    await service.block(current_user.user_id, target_ref)
    return MessageResponse(message="User blocked successfully")


@subscriptions_router.delete(
    "/block/{target_ref}",
    response_model=MessageResponse,
    summary="Unblock a member",
    responses={**_COMMON_ERRORS, 400: {"description": "User is not blocked"}},
)
@limiter.limit(settings.RATE_LIMIT_GRAPH_MUTATIONS)
async def unblock_user(
    request: Request,
    target_ref: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> MessageResponse:
    await service.unblock(current_user.user_id, target_ref)
    return MessageResponse(message="User unblocked successfully")


@subscriptions_router.get("/is-blocked/{target_ref}", response_model=RelationStatusResponse)
async def check_blocked(
    target_ref: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> RelationStatusResponse:
    return RelationStatusResponse(
        is_blocked=await service.is_blocked(current_user.user_id, target_ref)
    )


# =========================================================================
# ANY MEMBER
# =========================================================================

@user_graph_router.get("/{user_ref}/followers", response_model=ProfileListResponse, responses=_COMMON_ERRORS)
async def get_user_followers(
    user_ref: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> ProfileListResponse:
    return ProfileListResponse.from_profiles(await service.get_followers(user_ref))


@user_graph_router.get("/{user_ref}/following", response_model=ProfileListResponse, responses=_COMMON_ERRORS)
async def get_user_following(
    user_ref: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> ProfileListResponse:
    return ProfileListResponse.from_profiles(await service.get_following(user_ref))


@user_graph_router.get("/{user_ref}/connections", response_model=ProfileListResponse, responses=_COMMON_ERRORS)
async def get_user_connections(
    user_ref: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> ProfileListResponse:
    return ProfileListResponse.from_profiles(await service.get_connections(user_ref))


@user_graph_router.get("/{user_ref}/counts", response_model=CountsResponse, responses=_COMMON_ERRORS)
async def get_user_counts(
    user_ref: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SubscriptionGraphService = Depends(get_subscription_graph_service),
) -> CountsResponse:
    """Cached follower / following counters of a member."""
    following_count = await service.get_following_count(user_ref)
    followers_count = await service.get_followers_count(user_ref)
    return CountsResponse(
        user_ref=user_ref,
        following_count=following_count,
        followers_count=followers_count,
    )
