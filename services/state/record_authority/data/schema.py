"""SQLAlchemy table definitions owned by Record Authority Service."""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

# Single-value local state entries, each independently readable and clearable.
STATE_TOKEN = "secret_token"
STATE_NAMESPACE = "namespace"
STATE_SCHEMA_POSITION = "schema_position"
STATE_SCHEMA_DOCUMENT = "schema_document"

local_state = Table(
    "local_state",
    metadata,
    Column("key", String(64), primary_key=True),
    Column("value", Text, nullable=False),
)

record_index = Table(
    "record_index",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("position", Integer, nullable=False),
    Column("recorded_at", String(40), nullable=False),
    CheckConstraint("position >= 0", name="ck_record_index_position_nonnegative"),
)
