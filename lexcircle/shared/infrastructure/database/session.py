# 📄 File: lexcircle/shared/infrastructure/database/session.py
#
# 🧭 Purpose (Layman Explanation):
# Hands out database "conversations" (sessions) so that every small change to a member's
# relationships is saved on its own, all-or-nothing.
#
# 🧪 Purpose (Technical Summary):
# Async SQLAlchemy session factory management. The user record store opens one short
# transaction per single-record update through the factory exposed here.
#
# 🔗 Dependencies:
# - sqlalchemy.ext.asyncio (AsyncSession, async_sessionmaker)
# - lexcircle/shared/infrastructure/database/connection.py (database engine)
#
# 🔄 Connected Modules / Calls From:
# - lexcircle/modules/social_graph/presentation/dependencies.py (store wiring)
# - lexcircle/background_jobs/tasks/graph_maintenance.py (scheduled repair)
# - lexcircle/main.py (startup)

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from lexcircle.shared.core.exceptions import DatabaseError
from lexcircle.shared.infrastructure.database.connection import get_database_engine

logger = logging.getLogger(__name__)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create an AsyncSession factory bound to the given engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )


class DatabaseSessionManager:
    """
    Manages database sessions with transaction handling and automatic cleanup.
    """

    def __init__(self):
        self._session_factory: Optional[async_sessionmaker] = None

    def initialize(self, engine: Optional[AsyncEngine] = None) -> None:
        """Initialize the session factory with database engine."""
        try:
            self._session_factory = build_session_factory(engine or get_database_engine())
            logger.info("Database session factory initialized successfully")
        except RuntimeError as e:
            logger.error(f"Failed to initialize database session factory: {e}")
            raise DatabaseError(f"Session initialization failed: {e}")

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            raise DatabaseError("Session manager not initialized")
        return self._session_factory

    def is_initialized(self) -> bool:
        """Check if session manager is initialized."""
        return self._session_factory is not None

    def reset(self) -> None:
        self._session_factory = None


# Global session manager instance
session_manager = DatabaseSessionManager()


def initialize_sessions(engine: Optional[AsyncEngine] = None) -> None:
    """Initialize the global database session manager."""
    session_manager.initialize(engine)


def get_session_factory() -> async_sessionmaker:
    """FastAPI dependency returning the global session factory."""
    return session_manager.session_factory
