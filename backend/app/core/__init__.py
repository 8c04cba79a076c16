"""
Core package containing configuration, database, logging and shared helpers.
"""
from app.core.concurrency import KeyedLock
from app.core.config import settings
from app.core.database import Base, get_db_session
from app.core.geo import haversine_distance
from app.core.logging import configure_logging, get_logger

__all__ = [
    "settings",
    "Base",
    "get_db_session",
    "configure_logging",
    "get_logger",
    "haversine_distance",
    "KeyedLock",
]
