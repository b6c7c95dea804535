"""SQLite repository for Record Authority local state and position index."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import Engine, delete, func, insert, select
from sqlalchemy.orm import Session, sessionmaker

from services.state.record_authority.domain import RecordPointer

from .runtime import create_session_factory, transactional_session
from .schema import (
    STATE_NAMESPACE,
    STATE_SCHEMA_DOCUMENT,
    STATE_SCHEMA_POSITION,
    STATE_TOKEN,
    local_state,
    metadata,
    record_index,
)


class LocalStateRepository(Protocol):
    """Protocol for client-local persisted state."""

    def get_token(self) -> str | None:
        """Read the secret token, if any."""

    def set_token(self, token: str) -> None:
        """Persist the secret token."""

    def clear_token(self) -> None:
        """Remove the secret token."""

    def get_namespace(self) -> str | None:
        """Read the database namespace display form, if initialized."""

    def get_schema_position(self) -> int | None:
        """Read the position of the schema document, if initialized."""

    def get_cached_schema(self) -> dict[str, Any] | None:
        """Read the cached decrypted schema document."""

    def set_cached_schema(self, document: dict[str, Any]) -> None:
        """Replace the cached decrypted schema document."""

    def clear_cached_schema(self) -> None:
        """Drop the cached schema so the next read refetches it."""

    def initialize_database(
        self,
        *,
        namespace: str,
        schema_position: int,
        schema_document: dict[str, Any],
    ) -> None:
        """Record a new database and start an empty index, atomically."""

    def append_pointer(self, *, position: int, timestamp: datetime) -> RecordPointer:
        """Append one index entry and return it."""

    def list_pointers(self) -> list[RecordPointer]:
        """List index entries in append order."""

    def index_size(self) -> int:
        """Count index entries."""

    def clear_all(self) -> None:
        """Clear namespace, schema position, cached schema, index and token."""

    def dispose(self) -> None:
        """Release storage resources."""


class SqliteLocalStateRepository:
    """SQL repository over the local state tables."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions: sessionmaker[Session] = create_session_factory(engine)

    def create_schema(self) -> None:
        """Create owned tables when missing."""
        metadata.create_all(self._engine)

    def dispose(self) -> None:
        self._engine.dispose()

    def get_token(self) -> str | None:
        return self._get(STATE_TOKEN)

    def set_token(self, token: str) -> None:
        with transactional_session(self._sessions) as session:
            _put(session, STATE_TOKEN, token)

    def clear_token(self) -> None:
        with transactional_session(self._sessions) as session:
            _remove(session, STATE_TOKEN)

    def get_namespace(self) -> str | None:
        return self._get(STATE_NAMESPACE)

    def get_schema_position(self) -> int | None:
        value = self._get(STATE_SCHEMA_POSITION)
        return None if value is None else int(value)

    def get_cached_schema(self) -> dict[str, Any] | None:
        value = self._get(STATE_SCHEMA_DOCUMENT)
        if value is None:
            return None
        document = json.loads(value)
        return document if isinstance(document, dict) else None

    def set_cached_schema(self, document: dict[str, Any]) -> None:
        with transactional_session(self._sessions) as session:
            _put(session, STATE_SCHEMA_DOCUMENT, json.dumps(document))

    def clear_cached_schema(self) -> None:
        with transactional_session(self._sessions) as session:
            _remove(session, STATE_SCHEMA_DOCUMENT)

    def initialize_database(
        self,
        *,
        namespace: str,
        schema_position: int,
        schema_document: dict[str, Any],
    ) -> None:
        """Persist namespace, schema position and schema; reset the index."""
        with transactional_session(self._sessions) as session:
            _put(session, STATE_NAMESPACE, namespace)
            _put(session, STATE_SCHEMA_POSITION, str(schema_position))
            _put(session, STATE_SCHEMA_DOCUMENT, json.dumps(schema_document))
            session.execute(delete(record_index))

    def append_pointer(self, *, position: int, timestamp: datetime) -> RecordPointer:
        """Append one pointer after the existing entries."""
        with transactional_session(self._sessions) as session:
            session.execute(
                insert(record_index).values(
                    position=position, recorded_at=timestamp.isoformat()
                )
            )
        return RecordPointer(position=position, timestamp=timestamp)

    def list_pointers(self) -> list[RecordPointer]:
        with transactional_session(self._sessions) as session:
            rows = (
                session.execute(
                    select(record_index.c.position, record_index.c.recorded_at).order_by(
                        record_index.c.seq
                    )
                )
                .mappings()
                .all()
            )
        return [
            RecordPointer(
                position=int(row["position"]),
                timestamp=datetime.fromisoformat(row["recorded_at"]),
            )
            for row in rows
        ]

    def index_size(self) -> int:
        with transactional_session(self._sessions) as session:
            count = session.execute(
                select(func.count()).select_from(record_index)
            ).scalar_one()
        return int(count)

    def clear_all(self) -> None:
        """Clear every local state entry and the whole index."""
        with transactional_session(self._sessions) as session:
            session.execute(delete(local_state))
            session.execute(delete(record_index))

    def _get(self, key: str) -> str | None:
        with transactional_session(self._sessions) as session:
            value = session.execute(
                select(local_state.c.value).where(local_state.c.key == key)
            ).scalar_one_or_none()
        return None if value is None else str(value)


def _put(session: Session, key: str, value: str) -> None:
    """Upsert one local state entry."""
    session.execute(delete(local_state).where(local_state.c.key == key))
    session.execute(insert(local_state).values(key=key, value=value))


def _remove(session: Session, key: str) -> None:
    session.execute(delete(local_state).where(local_state.c.key == key))
