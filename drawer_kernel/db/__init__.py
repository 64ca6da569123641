"""Database infrastructure for the drawer kernel."""

from drawer_kernel.db.base import Base, TrackedBase, UTCDateTime, UUIDString
from drawer_kernel.db.engine import (
    create_db_engine,
    create_tables,
    drop_tables,
    make_session_factory,
    session_scope,
)
from drawer_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)

__all__ = [
    "Base",
    "TrackedBase",
    "UTCDateTime",
    "UUIDString",
    "create_db_engine",
    "create_tables",
    "drop_tables",
    "make_session_factory",
    "session_scope",
    "register_immutability_listeners",
    "unregister_immutability_listeners",
]
