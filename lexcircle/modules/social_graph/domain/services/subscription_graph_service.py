# 📄 File: lexcircle/modules/social_graph/domain/services/subscription_graph_service.py
# 🧭 Purpose (Layman Explanation):
# The rules of following and blocking: who can follow whom, what happens to both members'
# lists and numbers when someone follows, unfollows or blocks, and how lists are read back.
# 🧪 Purpose (Technical Summary):
# Domain service owning the subscription graph invariants. References are resolved to ids once
# per operation, every precondition is checked before the first write, and each mutation is a
# sequence of independent single-record store updates (no cross-record transaction).
# 🔗 Dependencies:
# UserRecordStore, NotificationDispatcher, GraphRepairService, shared exceptions and logging
# 🔄 Connected Modules / Calls From:
# presentation/api/v1/subscriptions.py, presentation/api/v1/admin.py, presentation/dependencies.py

import asyncio
import logging
from typing import List, Optional

from ..models.user_record import (
    FollowResult,
    PublicProfile,
    QuickRepairReport,
    RelationKind,
    RepairReport,
    SubscriptionSummary,
    UnfollowResult,
    UserRecord,
    parse_user_id,
)
from ..repositories.user_record_store import UserRecordStore
from .graph_repair_service import GraphRepairService
from lexcircle.modules.social_graph.infrastructure.notifications.dispatcher import (
    FOLLOW_EVENT,
    NotificationDispatcher,
)
from lexcircle.shared.core.exceptions import (
    AlreadyBlockedError,
    AlreadyFollowingError,
    BlockedRelationshipError,
    NotBlockedError,
    NotFollowingError,
    SelfReferenceError,
    StoreFailureError,
    UserNotFoundError,
)
from lexcircle.shared.utils.logging import get_logger

logger = logging.getLogger(__name__)
audit_logger = get_logger("lexcircle.audit.social_graph")


class SubscriptionGraphService:
    """
    Domain service for follow / block relationships between members.

    The service is stateless per call. Concurrency safety comes from the
    store's conditional single-record updates; a failure between the two
    writes of a pair leaves drift that GraphRepairService corrects.
    """

    def __init__(
        self,
        store: UserRecordStore,
        dispatcher: NotificationDispatcher,
        repair_service: Optional[GraphRepairService] = None,
        notification_timeout: float = 2.0
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._repair = repair_service or GraphRepairService(store)
        self._notification_timeout = notification_timeout

    # =========================================================================
    # REFERENCE RESOLUTION
    # =========================================================================

    async def _lookup(self, ref: str, load_relations: bool = True) -> Optional[UserRecord]:
        """Resolve an id-or-username reference to a user record."""
        user_id = parse_user_id(ref)
        if user_id is not None:
            return await self._store.get_by_id(user_id, load_relations=load_relations)
        return await self._store.get_by_username(ref, load_relations=load_relations)

    async def _require_actor(self, actor_id: str) -> UserRecord:
        actor = await self._lookup(actor_id)
        if actor is None or actor.is_deleted:
            raise UserNotFoundError(actor_id)
        return actor

    async def _require_user(
        self,
        ref: str,
        discoverable_only: bool = False,
        load_relations: bool = True
    ) -> UserRecord:
        user = await self._lookup(ref, load_relations=load_relations)
        if user is None or (discoverable_only and not user.is_discoverable):
            raise UserNotFoundError(ref)
        return user

    async def _second_write(self, operation: str, write, owner_id: str, kind: RelationKind, member_id: str) -> bool:
        """Run the mirroring write of a pair; a failure here leaves the first write in place."""
        try:
            return await write(owner_id, kind, member_id)
        except StoreFailureError:
            logger.error(
                f"{operation}: mirror write on {owner_id} ({kind.value} {member_id}) failed "
                f"after the first write succeeded; graph left for repair"
            )
            raise

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def follow(self, actor_id: str, target_ref: str) -> FollowResult:
        """
        Make ``actor_id`` follow the user identified by ``target_ref``.

        Args:
            actor_id: Id of the acting user
            target_ref: Target user id or username

        Returns:
            FollowResult: Target public profile and whether the notification went out

        Raises:
            UserNotFoundError: Actor missing/deleted, target missing, deleted or hidden,
                or target has blocked the actor
            SelfReferenceError: Target is the actor
            BlockedRelationshipError: Actor has blocked the target
            AlreadyFollowingError: Actor already follows target
            StoreFailureError: Store could not complete a write
        """
        actor = await self._require_actor(actor_id)
        target = await self._require_user(target_ref, discoverable_only=True)

        if target.user_id == actor.user_id:
            raise SelfReferenceError("follow")
        # a block on either side excludes follows in both directions
        if target.user_id in actor.blocked_users:
            raise BlockedRelationshipError(target.user_id)
        if actor.user_id in target.blocked_users:
            raise UserNotFoundError(target_ref)
        if target.user_id in actor.following:
            raise AlreadyFollowingError(target.user_id)

        await self._store.add_to_set(actor.user_id, RelationKind.FOLLOWING, target.user_id)
        await self._second_write(
            "follow", self._store.add_to_set, target.user_id, RelationKind.FOLLOWERS, actor.user_id
        )

        audit_logger.log_user_action("follow", actor.user_id, resource=f"user:{target.user_id}")
        notified = await self._notify_followed(actor, target)
        return FollowResult(target=target.to_public_profile(), notification_sent=notified)

    async def unfollow(self, actor_id: str, target_ref: str) -> UnfollowResult:
        """
        Remove the follow relationship from ``actor_id`` to ``target_ref``.

        Raises:
            UserNotFoundError: Actor or target does not exist
            SelfReferenceError: Target is the actor
            NotFollowingError: Actor does not follow target
        """
        actor = await self._require_actor(actor_id)
        target = await self._require_user(target_ref, load_relations=False)

        if target.user_id == actor.user_id:
            raise SelfReferenceError("unfollow")
        if target.user_id not in actor.following:
            raise NotFollowingError(target.user_id)

        await self._store.remove_from_set(actor.user_id, RelationKind.FOLLOWING, target.user_id)
        await self._second_write(
            "unfollow", self._store.remove_from_set, target.user_id, RelationKind.FOLLOWERS, actor.user_id
        )

        audit_logger.log_user_action("unfollow", actor.user_id, resource=f"user:{target.user_id}")
        return UnfollowResult(target=target.to_public_profile())

    async def block(self, actor_id: str, target_ref: str) -> None:
        """
        Block a user and sever every follow relationship between the two,
        in both directions, then recompute both users' counters.

        Raises:
            UserNotFoundError: Actor or target does not exist
            SelfReferenceError: Target is the actor
            AlreadyBlockedError: Target already blocked
        """
        actor = await self._require_actor(actor_id)
        target = await self._require_user(target_ref, load_relations=False)

        if target.user_id == actor.user_id:
            raise SelfReferenceError("block")
        if target.user_id in actor.blocked_users:
            raise AlreadyBlockedError(target.user_id)

        await self._store.add_to_set(actor.user_id, RelationKind.BLOCKED, target.user_id)

        severed = 0
        for owner_id, member_id in ((actor.user_id, target.user_id), (target.user_id, actor.user_id)):
            for kind in (RelationKind.FOLLOWING, RelationKind.FOLLOWERS):
                if await self._second_write("block", self._store.remove_from_set, owner_id, kind, member_id):
                    severed += 1

        await self._store.recompute_counters(actor.user_id)
        await self._store.recompute_counters(target.user_id)

        audit_logger.log_user_action(
            "block", actor.user_id, resource=f"user:{target.user_id}",
            extra={"relations_severed": severed}
        )

    async def unblock(self, actor_id: str, target_ref: str) -> None:
        """
        Remove a user from the actor's block list. Follow relationships
        severed by the block are not restored.

        Raises:
            UserNotFoundError: Actor or target does not exist
            NotBlockedError: Target is not blocked
        """
        actor = await self._require_actor(actor_id)
        target = await self._require_user(target_ref, load_relations=False)

        if target.user_id not in actor.blocked_users:
            raise NotBlockedError(target.user_id)

        await self._store.remove_from_set(actor.user_id, RelationKind.BLOCKED, target.user_id)
        audit_logger.log_user_action("unblock", actor.user_id, resource=f"user:{target.user_id}")

    async def _notify_followed(self, actor: UserRecord, target: UserRecord) -> bool:
        """Best-effort follow notification. Never raises."""
        try:
            await asyncio.wait_for(
                self._dispatcher.dispatch(
                    recipient_id=target.user_id,
                    actor_id=actor.user_id,
                    event_type=FOLLOW_EVENT,
                    message=f"{actor.username} started following you",
                ),
                timeout=self._notification_timeout,
            )
            return True
        except Exception as e:
            logger.warning(
                f"Follow notification to {target.user_id} from {actor.user_id} failed: {e!r}"
            )
            return False

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def _target_id(self, target_ref: str) -> Optional[str]:
        user_id = parse_user_id(target_ref)
        if user_id is not None:
            return user_id
        target = await self._store.get_by_username(target_ref, load_relations=False)
        return target.user_id if target else None

    async def is_following(self, actor_id: str, target_ref: str) -> bool:
        """True if the actor's following set holds the target. Unknown targets give False."""
        owner_id = parse_user_id(actor_id)
        target_id = await self._target_id(target_ref)
        if owner_id is None or target_id is None:
            return False
        return await self._store.has_member(owner_id, RelationKind.FOLLOWING, target_id)

    async def is_blocked(self, actor_id: str, target_ref: str) -> bool:
        """True if the actor has blocked the target. Unknown targets give False."""
        owner_id = parse_user_id(actor_id)
        target_id = await self._target_id(target_ref)
        if owner_id is None or target_id is None:
            return False
        return await self._store.has_member(owner_id, RelationKind.BLOCKED, target_id)

    async def get_followers(self, user_ref: str) -> List[PublicProfile]:
        user = await self._require_user(user_ref)
        return await self._profiles(user.followers)

    async def get_following(self, user_ref: str) -> List[PublicProfile]:
        user = await self._require_user(user_ref)
        return await self._profiles(user.following)

    async def get_connections(self, user_ref: str) -> List[PublicProfile]:
        """Mutual follows, recomputed from the stored sets on every call."""
        user = await self._require_user(user_ref)
        return await self._profiles(user.connections)

    async def get_blocked_users(self, user_ref: str) -> List[PublicProfile]:
        user = await self._require_user(user_ref)
        return await self._profiles(user.blocked_users)

    async def get_followers_count(self, user_ref: str) -> int:
        user = await self._require_user(user_ref, load_relations=False)
        return user.followers_count

    async def get_following_count(self, user_ref: str) -> int:
        user = await self._require_user(user_ref, load_relations=False)
        return user.following_count

    async def get_subscription_summary(self, user_ref: str) -> SubscriptionSummary:
        user = await self._require_user(user_ref)
        return SubscriptionSummary(
            user_id=user.user_id,
            following=await self._profiles(user.following),
            followers=await self._profiles(user.followers),
            following_count=user.following_count,
            followers_count=user.followers_count,
        )

    async def _profiles(self, user_ids) -> List[PublicProfile]:
        """Expand ids to public profiles ordered by username; ids without a record are skipped."""
        records = await self._store.get_many(user_ids)
        return [record.to_public_profile() for record in records]

    # =========================================================================
    # REPAIR
    # =========================================================================

    async def repair_counters(self) -> RepairReport:
        return await self._repair.repair_counters()

    async def quick_repair_counters(self, limit: Optional[int] = None) -> QuickRepairReport:
        return await self._repair.quick_repair_counters(limit)

    async def sync_user_counters(self, user_ref: str) -> bool:
        user = await self._require_user(user_ref, load_relations=False)
        return await self._repair.sync_user_counters(user.user_id)
