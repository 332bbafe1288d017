# 📄 File: lexcircle/modules/social_graph/presentation/api/schemas/graph_schemas.py
#
# 🧭 Purpose (Layman Explanation):
# Defines what the follow, block, list and repair answers of the API look like.
#
# 🧪 Purpose (Technical Summary):
# Pydantic response schemas for the social graph endpoints, built from the domain result
# objects of SubscriptionGraphService and GraphRepairService.
#
# 🔗 Dependencies:
# - pydantic for schema validation and serialization
# - lexcircle.modules.social_graph.domain.models.user_record (domain results)
#
# 🔄 Connected Modules / Calls From:
# - lexcircle.modules.social_graph.presentation.api.v1.subscriptions
# - lexcircle.modules.social_graph.presentation.api.v1.admin

"""
Social Graph API Schemas

Response Schemas:
- PublicProfileResponse: Public fields of a member
- FollowResponse / UnfollowResponse: Result of follow and unfollow
- ProfileListResponse: Followers, following, connections or blocked users
- SubscriptionSummaryResponse: Current user's following and followers with counters
- RelationStatusResponse / CountsResponse: Relationship checks and cached counters
- RepairReportResponse / QuickRepairReportResponse / SyncCountersResponse: Admin repair results
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from lexcircle.modules.social_graph.domain.models.user_record import (
    PublicProfile,
    QuickRepairReport,
    RepairReport,
    SubscriptionSummary,
)


class PublicProfileResponse(BaseModel):
    """Public profile fields of a member."""

    user_id: str = Field(..., description="User's unique identifier")
    username: str = Field(..., description="Unique public handle")
    first_name: Optional[str] = Field(default=None, description="First name")
    last_name: Optional[str] = Field(default=None, description="Last name")
    profile_picture: Optional[str] = Field(default=None, description="Avatar reference")
    bio: Optional[str] = Field(default=None, description="Short biography")
    organization: Optional[str] = Field(default=None, description="Law firm, court or school")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": "123e4567-e89b-12d3-a456-426614174000",
                "username": "avocat_dupont",
                "first_name": "Claire",
                "last_name": "Dupont",
                "profile_picture": "https://cdn.example.com/avatars/claire.png",
                "bio": "Droit des affaires",
                "organization": "Barreau de Paris"
            }
        }
    )

    @classmethod
    def from_domain(cls, profile: PublicProfile) -> "PublicProfileResponse":
        return cls(**profile.model_dump())


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class FollowResponse(MessageResponse):
    """Follow confirmation with the followed member's profile."""
    user: PublicProfileResponse
    notification_sent: bool = Field(default=False, description="Whether the follow notification was delivered")


class UnfollowResponse(MessageResponse):
    user: PublicProfileResponse


class ProfileListResponse(BaseModel):
    """List of member profiles ordered by username."""

    users: List[PublicProfileResponse] = Field(default_factory=list)
    count: int = Field(..., description="Number of profiles returned")

    @classmethod
    def from_profiles(cls, profiles: List[PublicProfile]) -> "ProfileListResponse":
        return cls(
            users=[PublicProfileResponse.from_domain(p) for p in profiles],
            count=len(profiles)
        )


class SubscriptionSummaryResponse(BaseModel):
    """Following and followers of the current user together with cached counters."""

    following: List[PublicProfileResponse] = Field(default_factory=list)
    followers: List[PublicProfileResponse] = Field(default_factory=list)
    following_count: int = 0
    followers_count: int = 0

    @classmethod
    def from_domain(cls, summary: SubscriptionSummary) -> "SubscriptionSummaryResponse":
        return cls(
            following=[PublicProfileResponse.from_domain(p) for p in summary.following],
            followers=[PublicProfileResponse.from_domain(p) for p in summary.followers],
            following_count=summary.following_count,
            followers_count=summary.followers_count,
        )


class RelationStatusResponse(BaseModel):
    is_following: Optional[bool] = None
    is_blocked: Optional[bool] = None


class CountsResponse(BaseModel):
    """Cached counters of a member."""
    user_ref: str = Field(..., description="Id or username as requested")
    following_count: int
    followers_count: int


class RepairReportResponse(MessageResponse):
    stats: RepairReport

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "message": "Subscription counter repair completed",
                "stats": {
                    "users_scanned": 1250,
                    "incorrect_counters": 4,
                    "users_corrected": 6,
                    "users_with_orphans": 2,
                    "orphaned_references_removed": 3
                }
            }
        }
    )


class QuickRepairReportResponse(MessageResponse):
    stats: QuickRepairReport


class SyncCountersResponse(MessageResponse):
    user_id: str
    changed: bool
