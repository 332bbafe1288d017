# 📄 File: lexcircle/modules/social_graph/domain/models/user_record.py
# 🧭 Purpose (Layman Explanation):
# Describes a community member as the social graph sees them: who they follow, who follows
# them, who they have blocked, and the follower/following numbers shown on their profile.
# 🧪 Purpose (Technical Summary):
# Pydantic domain models for the subscription graph: the UserRecord aggregate, the public
# profile projection returned by reads, and the result/report objects of graph operations.
# 🔗 Dependencies:
# pydantic, enum, typing, uuid
# 🔄 Connected Modules / Calls From:
# user_record_store.py, subscription_graph_service.py, graph_repair_service.py,
# user_record_store_impl.py, graph_schemas.py

import uuid
from enum import Enum
from typing import List, NamedTuple, Optional, Set

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """Platform role of a member"""
    USER = "user"
    ADMIN = "admin"


class RelationKind(str, Enum):
    """Relationship sets kept on every user record"""
    FOLLOWING = "following"
    FOLLOWERS = "followers"
    BLOCKED = "blocked"


COUNTED_KINDS = (RelationKind.FOLLOWING, RelationKind.FOLLOWERS)


def counter_field(kind: RelationKind) -> str:
    """Name of the cached counter that mirrors the size of a relationship set."""
    if kind not in COUNTED_KINDS:
        raise ValueError(f"{kind.value} has no cached counter")
    return f"{kind.value}_count"


def parse_user_id(ref: str) -> Optional[str]:
    """Return the canonical id string if ``ref`` looks like a user id, else None."""
    try:
        return str(uuid.UUID(str(ref)))
    except (ValueError, AttributeError, TypeError):
        return None


class PublicProfile(BaseModel):
    """Public projection of a member returned by follow and list operations"""
    user_id: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    organization: Optional[str] = None


class UserRecord(BaseModel):
    """
    User record as owned by the user record store.

    Relationship sets hold user ids. Counters are cached sizes of the
    following / followers sets and may drift until repaired.
    """

    user_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    username: str

    # Public profile
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    organization: Optional[str] = None

    role: UserRole = UserRole.USER
    is_deleted: bool = False
    hide_from_suggestions: bool = False

    # Relationship sets
    following: Set[str] = Field(default_factory=set)
    followers: Set[str] = Field(default_factory=set)
    blocked_users: Set[str] = Field(default_factory=set)

    # Cached counters
    following_count: int = 0
    followers_count: int = 0

    def members(self, kind: RelationKind) -> Set[str]:
        if kind == RelationKind.FOLLOWING:
            return self.following
        if kind == RelationKind.FOLLOWERS:
            return self.followers
        return self.blocked_users

    @property
    def connections(self) -> Set[str]:
        """Mutual follows, computed on read."""
        return self.following & self.followers

    @property
    def is_discoverable(self) -> bool:
        return not self.is_deleted and not self.hide_from_suggestions

    def counters_match(self) -> bool:
        return (
            self.following_count == len(self.following)
            and self.followers_count == len(self.followers)
        )

    def to_public_profile(self) -> PublicProfile:
        return PublicProfile(
            user_id=self.user_id,
            username=self.username,
            first_name=self.first_name,
            last_name=self.last_name,
            profile_picture=self.profile_picture,
            bio=self.bio,
            organization=self.organization,
        )


# =============================================================================
# OPERATION RESULTS
# =============================================================================

class FollowResult(BaseModel):
    """Outcome of a successful follow"""
    target: PublicProfile
    notification_sent: bool = False


class UnfollowResult(BaseModel):
    """Outcome of a successful unfollow"""
    target: PublicProfile


class SubscriptionSummary(BaseModel):
    """Following / followers of one member together with the cached counters"""
    user_id: str
    following: List[PublicProfile] = Field(default_factory=list)
    followers: List[PublicProfile] = Field(default_factory=list)
    following_count: int = 0
    followers_count: int = 0


class RepairReport(BaseModel):
    """Statistics of a full graph repair pass"""
    users_scanned: int = 0
    incorrect_counters: int = 0
    users_corrected: int = 0
    users_with_orphans: int = 0
    orphaned_references_removed: int = 0


class CounterSnapshot(NamedTuple):
    """Stored counters of one user next to the live sizes of its sets"""
    user_id: str
    following_count: int
    followers_count: int
    actual_following: int
    actual_followers: int

    @property
    def drifted(self) -> bool:
        return (
            self.following_count != self.actual_following
            or self.followers_count != self.actual_followers
        )


class QuickRepairReport(BaseModel):
    """Statistics of a counters-only repair pass"""
    users_scanned: int = 0
    corrections: int = 0
