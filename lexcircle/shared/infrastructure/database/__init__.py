from .connection import Base, close_database, database_health_check, init_database
from .session import build_session_factory, get_session_factory, initialize_sessions

__all__ = [
    "Base",
    "init_database",
    "close_database",
    "database_health_check",
    "build_session_factory",
    "get_session_factory",
    "initialize_sessions",
]
