from .user_record import (
    COUNTED_KINDS,
    CounterSnapshot,
    FollowResult,
    PublicProfile,
    QuickRepairReport,
    RelationKind,
    RepairReport,
    SubscriptionSummary,
    UnfollowResult,
    UserRecord,
    UserRole,
    counter_field,
    parse_user_id,
)

__all__ = [
    "COUNTED_KINDS",
    "CounterSnapshot",
    "FollowResult",
    "PublicProfile",
    "QuickRepairReport",
    "RelationKind",
    "RepairReport",
    "SubscriptionSummary",
    "UnfollowResult",
    "UserRecord",
    "UserRole",
    "counter_field",
    "parse_user_id",
]
