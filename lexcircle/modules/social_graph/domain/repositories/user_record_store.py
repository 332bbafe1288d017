# 📄 File: lexcircle/modules/social_graph/domain/repositories/user_record_store.py
# 🧭 Purpose (Layman Explanation):
# Defines what the social graph needs from storage: look members up, add or remove someone from
# their follow/block lists, and fix the follower numbers, without saying which database is used.
# 🧪 Purpose (Technical Summary):
# Repository interface for UserRecord persistence. Every mutating method acts on exactly one
# user record and is atomic and idempotent on its own; pairs of calls are never a unit.
# 🔗 Dependencies:
# Domain models (UserRecord, RelationKind), typing, abc
# 🔄 Connected Modules / Calls From:
# subscription_graph_service.py, graph_repair_service.py, user_record_store_impl.py

from abc import ABC, abstractmethod
from typing import AsyncIterator, Dict, Iterable, List, Optional, Set, Tuple

from ..models.user_record import CounterSnapshot, RelationKind, UserRecord


class UserRecordStore(ABC):
    """
    Repository interface for UserRecord data access operations.

    Implementation Notes:
    - Methods return domain entities (UserRecord), not database models
    - Each mutating call runs in its own short transaction
    - Store failures are raised as StoreFailureError
    """

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    @abstractmethod
    async def get_by_id(self, user_id: str, load_relations: bool = True) -> Optional[UserRecord]:
        """
        Get user record by ID.

        Args:
            user_id: User ID to find
            load_relations: Also load following / followers / blocked sets

        Returns:
            UserRecord if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_username(self, username: str, load_relations: bool = True) -> Optional[UserRecord]:
        """
        Get user record by username.

        Args:
            username: Unique username
            load_relations: Also load following / followers / blocked sets

        Returns:
            UserRecord if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_many(self, user_ids: Iterable[str]) -> List[UserRecord]:
        """
        Get user records (without relation sets) for a collection of ids.
        Ids with no record are skipped. Results are ordered by username.
        """
        pass

    @abstractmethod
    async def exists_many(self, user_ids: Iterable[str]) -> Set[str]:
        """Return the subset of ``user_ids`` that have a user record."""
        pass

    @abstractmethod
    async def has_member(self, owner_id: str, kind: RelationKind, member_id: str) -> bool:
        """Check whether ``member_id`` is in the ``kind`` set of ``owner_id``."""
        pass

    # =========================================================================
    # SINGLE-RECORD ATOMIC UPDATES
    # =========================================================================

    @abstractmethod
    async def add_to_set(self, owner_id: str, kind: RelationKind, member_id: str) -> bool:
        """
        Add ``member_id`` to a relationship set of ``owner_id``.

        Conditional on the member not already being present. For following /
        followers the matching counter is incremented in the same transaction.

        Returns:
            True if the member was added, False if it was already present
        """
        pass

    @abstractmethod
    async def remove_from_set(self, owner_id: str, kind: RelationKind, member_id: str) -> bool:
        """
        Remove ``member_id`` from a relationship set of ``owner_id``.

        Conditional on the member being present. For following / followers the
        matching counter is decremented in the same transaction.

        Returns:
            True if the member was removed, False if it was absent
        """
        pass

    @abstractmethod
    async def recompute_counters(self, user_id: str) -> Tuple[int, int]:
        """
        Overwrite both counters of one user with the current set sizes.

        Returns:
            (following_count, followers_count) as written
        """
        pass

    # =========================================================================
    # REPAIR SUPPORT
    # =========================================================================

    @abstractmethod
    def iter_records(self, batch_size: int = 200) -> AsyncIterator[List[UserRecord]]:
        """Full scan over every user record in batches, relation sets loaded."""
        pass

    @abstractmethod
    async def counter_snapshots(self, limit: Optional[int] = None) -> List[CounterSnapshot]:
        """
        Read stored counters alongside the live set sizes, without loading
        the sets themselves.

        Args:
            limit: Maximum number of users to read (None = all)
        """
        pass

    @abstractmethod
    async def replace_relations(
        self,
        user_id: str,
        following: Set[str],
        followers: Set[str]
    ) -> None:
        """
        Persist cleaned following / followers sets of one user together with
        counters equal to their sizes.
        """
        pass

    @abstractmethod
    async def bulk_set_counters(self, counters: Dict[str, Tuple[int, int]]) -> int:
        """
        Overwrite the counters of many users in a single write.

        Args:
            counters: user_id -> (following_count, followers_count)

        Returns:
            Number of records updated
        """
        pass
