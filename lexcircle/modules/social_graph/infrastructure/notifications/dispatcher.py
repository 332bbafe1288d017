# 📄 File: lexcircle/modules/social_graph/infrastructure/notifications/dispatcher.py
# 🧭 Purpose (Layman Explanation):
# Tells a member that someone started following them by leaving a message in their
# notification inbox.
#
# 🧪 Purpose (Technical Summary):
# NotificationDispatcher interface consumed fire-and-forget by the graph service, and a
# SQLAlchemy implementation that writes one notifications row per dispatch.
#
# 🔗 Dependencies:
# - SQLAlchemy async sessions
# - lexcircle.modules.social_graph.infrastructure.database.models (NotificationModel)
#
# 🔄 Connected Modules / Calls From:
# - subscription_graph_service.py (follow side effect)
# - lexcircle.modules.social_graph.presentation.dependencies (DI wiring)

import logging
from abc import ABC, abstractmethod

from sqlalchemy.ext.asyncio import async_sessionmaker

from lexcircle.modules.social_graph.infrastructure.database.models import NotificationModel

logger = logging.getLogger(__name__)

FOLLOW_EVENT = "follow"


class NotificationDispatcher(ABC):
    """Delivers a notification about a graph event to one recipient."""

    @abstractmethod
    async def dispatch(self, recipient_id: str, actor_id: str, event_type: str, message: str) -> None:
        """
        Deliver a notification.

        Args:
            recipient_id: User receiving the notification
            actor_id: User who caused the event
            event_type: Notification type (e.g. "follow")
            message: Human readable text
        """
        pass


class DatabaseNotificationDispatcher(NotificationDispatcher):
    """Stores notifications in the notifications table for in-app display."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def dispatch(self, recipient_id: str, actor_id: str, event_type: str, message: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                session.add(NotificationModel(
                    recipient_id=recipient_id,
                    sender_id=actor_id,
                    type=event_type,
                    message=message,
                ))
        logger.debug(f"Notification '{event_type}' stored for {recipient_id}")
