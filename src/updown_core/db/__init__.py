"""Ledger database: engine, sessions and the ORM base."""

from updown_core.db.base import Base
from updown_core.db.engine import (
    dispose_engine,
    get_engine,
    get_session,
    init_engine,
    normalise_url,
    session_scope,
)

__all__ = [
    "Base",
    "dispose_engine",
    "get_engine",
    "get_session",
    "init_engine",
    "normalise_url",
    "session_scope",
]
