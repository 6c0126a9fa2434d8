"""Database layer for labadmin."""

from labadmin.db.base import Base
from labadmin.db.session import (
    AsyncSessionLocal,
    engine,
    get_db,
    init_db,
)

__all__ = [
    "Base",
    "AsyncSessionLocal",
    "engine",
    "get_db",
    "init_db",
]
