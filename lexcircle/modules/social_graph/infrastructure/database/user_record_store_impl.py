# 📄 File: lexcircle/modules/social_graph/infrastructure/database/user_record_store_impl.py
# 🧭 Purpose (Layman Explanation):
# This file does the actual database work for the social graph: looking members up, adding or
# removing one entry of a follow/block list, and keeping the follower numbers in step.
#
# 🧪 Purpose (Technical Summary):
# SQLAlchemy implementation of UserRecordStore. Each mutating method opens its own short
# transaction: a conditional insert/delete of one relation row plus the matching counter
# increment/decrement, so repeated or concurrent calls never duplicate or double count.
#
# 🔗 Dependencies:
# - lexcircle.modules.social_graph.domain.repositories.user_record_store (interface)
# - lexcircle.modules.social_graph.infrastructure.database.models (SQLAlchemy models)
# - SQLAlchemy async sessions, PostgreSQL / SQLite "ON CONFLICT DO NOTHING" inserts
#
# 🔄 Connected Modules / Calls From:
# - lexcircle.modules.social_graph.presentation.dependencies (DI wiring)
# - lexcircle.background_jobs.tasks.graph_maintenance (scheduled repair)

"""
User Record Store Implementation

Maps UserModel / UserRelationModel rows to UserRecord domain entities and
implements the single-record atomic primitives the graph service builds on.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lexcircle.modules.social_graph.domain.models.user_record import (
    COUNTED_KINDS,
    CounterSnapshot,
    RelationKind,
    UserRecord,
    counter_field,
)
from lexcircle.modules.social_graph.domain.repositories.user_record_store import UserRecordStore
from lexcircle.modules.social_graph.infrastructure.database.models import (
    UserModel,
    UserRelationModel,
)
from lexcircle.shared.core.exceptions import StoreFailureError

logger = logging.getLogger(__name__)

_RELATION_KEY = ["owner_id", "kind", "member_id"]


class SQLAlchemyUserRecordStore(UserRecordStore):
    """
    SQLAlchemy implementation of the UserRecordStore interface.

    Holds a session factory rather than a session: every public method
    runs in a transaction of its own.
    """

    def __init__(self, session_factory: async_sessionmaker):
        """
        Initialize the store.

        Args:
            session_factory: Factory producing AsyncSession objects
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        """Open a session with a transaction, mapping database errors to StoreFailureError."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error(f"Database error during {operation}: {e}")
            raise StoreFailureError(operation=operation) from e

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    async def get_by_id(self, user_id: str, load_relations: bool = True) -> Optional[UserRecord]:
        async with self._transaction("get_by_id") as session:
            user_model = await session.get(UserModel, user_id)
            if user_model is None:
                logger.debug(f"User not found: {user_id}")
                return None
            relations = await self._load_relations(session, [user_model.user_id]) if load_relations else {}
            return self._model_to_domain(user_model, relations.get(user_model.user_id))

    async def get_by_username(self, username: str, load_relations: bool = True) -> Optional[UserRecord]:
        async with self._transaction("get_by_username") as session:
            result = await session.execute(select(UserModel).where(UserModel.username == username))
            user_model = result.scalar_one_or_none()
            if user_model is None:
                logger.debug(f"User not found by username: {username}")
                return None
            relations = await self._load_relations(session, [user_model.user_id]) if load_relations else {}
            return self._model_to_domain(user_model, relations.get(user_model.user_id))

    async def get_many(self, user_ids: Iterable[str]) -> List[UserRecord]:
        ids = list(set(user_ids))
        if not ids:
            return []

        async with self._transaction("get_many") as session:
            result = await session.execute(
                select(UserModel).where(UserModel.user_id.in_(ids)).order_by(UserModel.username)
            )
            return [self._model_to_domain(model) for model in result.scalars().all()]

    async def exists_many(self, user_ids: Iterable[str]) -> Set[str]:
        ids = list(set(user_ids))
        if not ids:
            return set()

        async with self._transaction("exists_many") as session:
            result = await session.execute(select(UserModel.user_id).where(UserModel.user_id.in_(ids)))
            return set(result.scalars().all())

    async def has_member(self, owner_id: str, kind: RelationKind, member_id: str) -> bool:
        async with self._transaction("has_member") as session:
            result = await session.execute(
                select(UserRelationModel.relation_id).where(
                    UserRelationModel.owner_id == owner_id,
                    UserRelationModel.kind == kind,
                    UserRelationModel.member_id == member_id,
                ).limit(1)
            )
            return result.scalar_one_or_none() is not None

    # =========================================================================
    # SINGLE-RECORD ATOMIC UPDATES
    # =========================================================================

    async def add_to_set(self, owner_id: str, kind: RelationKind, member_id: str) -> bool:
        async with self._transaction("add_to_set") as session:
            result = await session.execute(
                self._insert_relation_stmt(session, owner_id, kind, member_id)
            )
            added = result.rowcount == 1
            if added and kind in COUNTED_KINDS:
                counter = getattr(UserModel, counter_field(kind))
                await session.execute(
                    update(UserModel)
                    .where(UserModel.user_id == owner_id)
                    .values({counter: counter + 1})
                    .execution_options(synchronize_session=False)
                )

        logger.debug(f"add_to_set {owner_id} {kind.value} {member_id}: added={added}")
        return added

    async def remove_from_set(self, owner_id: str, kind: RelationKind, member_id: str) -> bool:
        async with self._transaction("remove_from_set") as session:
            result = await session.execute(
                delete(UserRelationModel).where(
                    UserRelationModel.owner_id == owner_id,
                    UserRelationModel.kind == kind,
                    UserRelationModel.member_id == member_id,
                ).execution_options(synchronize_session=False)
            )
            removed = result.rowcount == 1
            if removed and kind in COUNTED_KINDS:
                counter = getattr(UserModel, counter_field(kind))
                # never below zero, even when the counter had already drifted
                await session.execute(
                    update(UserModel)
                    .where(UserModel.user_id == owner_id)
                    .values({counter: case((counter > 0, counter - 1), else_=0)})
                    .execution_options(synchronize_session=False)
                )

        logger.debug(f"remove_from_set {owner_id} {kind.value} {member_id}: removed={removed}")
        return removed

    async def recompute_counters(self, user_id: str) -> Tuple[int, int]:
        async with self._transaction("recompute_counters") as session:
            following = await self._count(session, user_id, RelationKind.FOLLOWING)
            followers = await self._count(session, user_id, RelationKind.FOLLOWERS)
            await session.execute(
                update(UserModel)
                .where(UserModel.user_id == user_id)
                .values(following_count=following, followers_count=followers)
                .execution_options(synchronize_session=False)
            )
        return following, followers

    # =========================================================================
    # REPAIR SUPPORT
    # =========================================================================

    async def iter_records(self, batch_size: int = 200) -> AsyncIterator[List[UserRecord]]:
        last_id: Optional[str] = None
        while True:
            async with self._transaction("iter_records") as session:
                stmt = select(UserModel).order_by(UserModel.user_id).limit(batch_size)
                if last_id is not None:
                    stmt = stmt.where(UserModel.user_id > last_id)
                models = (await session.execute(stmt)).scalars().all()
                if not models:
                    return
                relations = await self._load_relations(session, [m.user_id for m in models])
                batch = [self._model_to_domain(m, relations.get(m.user_id)) for m in models]

            last_id = models[-1].user_id
            yield batch

    async def counter_snapshots(self, limit: Optional[int] = None) -> List[CounterSnapshot]:
        stmt = select(
            UserModel.user_id,
            UserModel.following_count,
            UserModel.followers_count,
            self._count_subquery(RelationKind.FOLLOWING),
            self._count_subquery(RelationKind.FOLLOWERS),
        ).order_by(UserModel.user_id)
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._transaction("counter_snapshots") as session:
            rows = (await session.execute(stmt)).all()
        return [CounterSnapshot(*row) for row in rows]

    async def replace_relations(self, user_id: str, following: Set[str], followers: Set[str]) -> None:
        """
        Keep only the given members in the following / followers sets and
        write counters equal to their sizes. The given sets are expected to
        be subsets of what is stored; nothing is inserted.
        """
        async with self._transaction("replace_relations") as session:
            for kind, keep in ((RelationKind.FOLLOWING, following), (RelationKind.FOLLOWERS, followers)):
                stmt = delete(UserRelationModel).where(
                    UserRelationModel.owner_id == user_id,
                    UserRelationModel.kind == kind,
                ).execution_options(synchronize_session=False)
                if keep:
                    stmt = stmt.where(UserRelationModel.member_id.not_in(list(keep)))
                await session.execute(stmt)

            await session.execute(
                update(UserModel)
                .where(UserModel.user_id == user_id)
                .values(following_count=len(following), followers_count=len(followers))
                .execution_options(synchronize_session=False)
            )

    async def bulk_set_counters(self, counters: Dict[str, Tuple[int, int]]) -> int:
        if not counters:
            return 0

        async with self._transaction("bulk_set_counters") as session:
            await session.execute(
                update(UserModel),
                [
                    {"user_id": user_id, "following_count": following, "followers_count": followers}
                    for user_id, (following, followers) in counters.items()
                ],
            )
        return len(counters)

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _insert_relation_stmt(session: AsyncSession, owner_id: str, kind: RelationKind, member_id: str):
        """Dialect-specific INSERT ... ON CONFLICT DO NOTHING for one relation row."""
        values = {"owner_id": owner_id, "kind": kind, "member_id": member_id}
        if session.bind.dialect.name == "postgresql":
            return pg_insert(UserRelationModel).values(**values).on_conflict_do_nothing(
                index_elements=_RELATION_KEY
            )
        return sqlite_insert(UserRelationModel).values(**values).on_conflict_do_nothing(
            index_elements=_RELATION_KEY
        )

    @staticmethod
    def _count_subquery(kind: RelationKind):
        return (
            select(func.count(UserRelationModel.relation_id))
            .where(UserRelationModel.owner_id == UserModel.user_id, UserRelationModel.kind == kind)
            .correlate(UserModel)
            .scalar_subquery()
        )

    @staticmethod
    async def _count(session: AsyncSession, user_id: str, kind: RelationKind) -> int:
        result = await session.execute(
            select(func.count(UserRelationModel.relation_id)).where(
                UserRelationModel.owner_id == user_id,
                UserRelationModel.kind == kind,
            )
        )
        return result.scalar_one()

    @staticmethod
    async def _load_relations(
        session: AsyncSession,
        owner_ids: List[str]
    ) -> Dict[str, Dict[RelationKind, Set[str]]]:
        result = await session.execute(
            select(UserRelationModel.owner_id, UserRelationModel.kind, UserRelationModel.member_id)
            .where(UserRelationModel.owner_id.in_(owner_ids))
        )
        relations: Dict[str, Dict[RelationKind, Set[str]]] = {}
        for owner_id, kind, member_id in result.all():
            relations.setdefault(owner_id, {}).setdefault(RelationKind(kind), set()).add(member_id)
        return relations

    @staticmethod
    def _model_to_domain(
        model: UserModel,
        relations: Optional[Dict[RelationKind, Set[str]]] = None
    ) -> UserRecord:
        """Convert SQLAlchemy model to domain entity."""
        relations = relations or {}
        return UserRecord(
            user_id=model.user_id,
            username=model.username,
            first_name=model.first_name,
            last_name=model.last_name,
            profile_picture=model.profile_picture,
            bio=model.bio,
            organization=model.organization,
            role=model.role,
            is_deleted=model.is_deleted,
            hide_from_suggestions=model.hide_from_suggestions,
            following=relations.get(RelationKind.FOLLOWING, set()),
            followers=relations.get(RelationKind.FOLLOWERS, set()),
            blocked_users=relations.get(RelationKind.BLOCKED, set()),
            following_count=model.following_count,
            followers_count=model.followers_count,
        )
