"""Domain payload contracts for Record Authority Service."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from packages.blobvault_shared.errors import ErrorDetail

FieldType = Literal["string", "number", "boolean", "object", "array"]
FIELD_TYPES: tuple[str, ...] = ("string", "number", "boolean", "object", "array")


class FieldSpec(BaseModel):
    """Declared type and presence rule for one record field."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: FieldType
    required: bool = False


class SchemaInitResult(BaseModel):
    """Namespace and position of a freshly initialized database."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    namespace: str
    position: int


class RecordPointer(BaseModel):
    """One local index entry pointing at a stored record."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    position: int
    timestamp: datetime


class StoredSchema(BaseModel):
    """Decrypted schema document of one database."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    fields: dict[str, FieldSpec]
    created_at: str
    version: str
    position: int

    def definition(self) -> dict[str, dict[str, Any]]:
        """Return the schema in its stored ``{field: {type, required}}`` form."""
        return {name: spec.model_dump() for name, spec in self.fields.items()}


class StoredRecord(BaseModel):
    """One decrypted record and its position."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    position: int
    data: dict[str, Any]
    created_at: str


class EntryFailure(BaseModel):
    """One indexed position that could not be read back as a record."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    position: int
    error: ErrorDetail


class RecordListing(BaseModel):
    """Result of listing: readable records, newest first, plus failures."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    records: list[StoredRecord]
    failures: list[EntryFailure]
    index_size: int

    @property
    def all_failed(self) -> bool:
        """True when the index is non-empty but nothing could be decrypted."""
        return self.index_size > 0 and len(self.records) == 0


class DatabaseInfo(BaseModel):
    """Summary of the locally recorded database."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    namespace: str
    schema_position: int
    index_size: int
    has_token: bool
