import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-lexcircle-tests")

from typing import Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from lexcircle.modules.social_graph.domain.models.user_record import RelationKind  # noqa: E402
from lexcircle.modules.social_graph.domain.services.graph_repair_service import GraphRepairService  # noqa: E402
from lexcircle.modules.social_graph.domain.services.subscription_graph_service import (  # noqa: E402
    SubscriptionGraphService,
)
from lexcircle.modules.social_graph.infrastructure.database.models import (  # noqa: E402
    UserModel,
    UserRelationModel,
)
from lexcircle.modules.social_graph.infrastructure.database.user_record_store_impl import (  # noqa: E402
    SQLAlchemyUserRecordStore,
)
from lexcircle.modules.social_graph.infrastructure.notifications.dispatcher import (  # noqa: E402
    NotificationDispatcher,
)
from lexcircle.shared.infrastructure.database.connection import Base  # noqa: E402
from lexcircle.shared.infrastructure.database.session import build_session_factory  # noqa: E402


class RecordingDispatcher(NotificationDispatcher):
    """Keeps dispatched notifications in memory; can be told to fail."""

    def __init__(self, error: Optional[Exception] = None):
        self.sent: List[Dict[str, str]] = []
        self.error = error

    async def dispatch(self, recipient_id: str, actor_id: str, event_type: str, message: str) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append({
            "recipient_id": recipient_id,
            "actor_id": actor_id,
            "event_type": event_type,
            "message": message,
        })


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return SQLAlchemyUserRecordStore(session_factory)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def repair_service(store):
    return GraphRepairService(store, batch_size=2)


@pytest.fixture
def service(store, dispatcher, repair_service):
    return SubscriptionGraphService(store, dispatcher, repair_service=repair_service, notification_timeout=0.5)


@pytest.fixture
def make_user(session_factory):
    """Insert a user row directly and return its id."""

    async def _make_user(username: str, **fields) -> str:
        async with session_factory() as session:
            async with session.begin():
                user = UserModel(username=username, **fields)
                session.add(user)
                await session.flush()
                return user.user_id

    return _make_user


@pytest.fixture
def add_relation(session_factory):
    """Insert a raw relation row without touching counters."""

    async def _add_relation(owner_id: str, kind: RelationKind, member_id: str) -> None:
        async with session_factory() as session:
            async with session.begin():
                session.add(UserRelationModel(owner_id=owner_id, kind=kind, member_id=member_id))

    return _add_relation


@pytest.fixture
def delete_user(session_factory):
    """Hard-delete a user row, leaving references to it in other users' sets."""

    async def _delete_user(user_id: str) -> None:
        async with session_factory() as session:
            async with session.begin():
                user = await session.get(UserModel, user_id)
                await session.delete(user)

    return _delete_user
