# 📄 File: lexcircle/modules/social_graph/presentation/dependencies.py
# 🧭 Purpose (Layman Explanation):
# Puts the social graph pieces together for each web request: the database store, the
# notification sender and the service that applies the follow/block rules.
# 🧪 Purpose (Technical Summary):
# FastAPI dependency providers wiring SQLAlchemyUserRecordStore, DatabaseNotificationDispatcher,
# GraphRepairService and SubscriptionGraphService from the shared session factory and settings.
# 🔗 Dependencies:
# FastAPI Depends, lexcircle.shared.infrastructure.database.session, module infrastructure
# 🔄 Connected Modules / Calls From:
# presentation/api/v1/subscriptions.py, presentation/api/v1/admin.py, tests (dependency_overrides)

from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from lexcircle.modules.social_graph.domain.repositories.user_record_store import UserRecordStore
from lexcircle.modules.social_graph.domain.services.graph_repair_service import GraphRepairService
from lexcircle.modules.social_graph.domain.services.subscription_graph_service import (
    SubscriptionGraphService,
)
from lexcircle.modules.social_graph.infrastructure.database.user_record_store_impl import (
    SQLAlchemyUserRecordStore,
)
from lexcircle.modules.social_graph.infrastructure.notifications.dispatcher import (
    DatabaseNotificationDispatcher,
    NotificationDispatcher,
)
from lexcircle.shared.config.settings import get_settings
from lexcircle.shared.infrastructure.database.session import get_session_factory


def get_user_record_store(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> UserRecordStore:
    return SQLAlchemyUserRecordStore(session_factory)


def get_notification_dispatcher(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> NotificationDispatcher:
    return DatabaseNotificationDispatcher(session_factory)


def get_graph_repair_service(
    store: UserRecordStore = Depends(get_user_record_store),
) -> GraphRepairService:
    settings = get_settings()
    return GraphRepairService(
        store,
        batch_size=settings.GRAPH_REPAIR_BATCH_SIZE,
        quick_repair_default_limit=settings.QUICK_REPAIR_DEFAULT_LIMIT,
    )


def get_subscription_graph_service(
    store: UserRecordStore = Depends(get_user_record_store),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    repair_service: GraphRepairService = Depends(get_graph_repair_service),
) -> SubscriptionGraphService:
    """Build the graph service for one request."""
    return SubscriptionGraphService(
        store,
        dispatcher,
        repair_service=repair_service,
        notification_timeout=get_settings().NOTIFICATION_TIMEOUT_SECONDS,
    )
