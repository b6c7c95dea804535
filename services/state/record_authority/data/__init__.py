"""Data-layer exports for Record Authority Service."""

from services.state.record_authority.data.repository import (
    LocalStateRepository,
    SqliteLocalStateRepository,
)
from services.state.record_authority.data.runtime import (
    create_session_factory,
    create_state_engine,
    transactional_session,
)
from services.state.record_authority.data.schema import metadata

__all__ = [
    "LocalStateRepository",
    "SqliteLocalStateRepository",
    "create_session_factory",
    "create_state_engine",
    "metadata",
    "transactional_session",
]
