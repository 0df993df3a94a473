"""Core application components."""

from .config import Settings, settings
from .database import (
    AsyncSessionLocal,
    build_engine,
    build_session_factory,
    drop_db,
    engine,
    get_db,
    init_db,
)

__all__ = [
    "settings",
    "Settings",
    "engine",
    "AsyncSessionLocal",
    "build_engine",
    "build_session_factory",
    "get_db",
    "init_db",
    "drop_db",
]
