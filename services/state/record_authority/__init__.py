"""Record Authority Service native package exports."""

from packages.blobvault_shared.errors import ErrorCategory, ErrorDetail
from services.state.record_authority.component import SERVICE_COMPONENT_ID
from services.state.record_authority.config import RecordAuthoritySettings
from services.state.record_authority.domain import (
    DatabaseInfo,
    EntryFailure,
    FieldSpec,
    RecordListing,
    RecordPointer,
    SchemaInitResult,
    StoredRecord,
    StoredSchema,
)
from services.state.record_authority.implementation import (
    DefaultRecordAuthorityService,
)
from services.state.record_authority.service import (
    RecordAuthorityService,
    build_record_authority_service,
)
from services.state.record_authority.session import VaultSession

__all__ = [
    "SERVICE_COMPONENT_ID",
    "RecordAuthorityService",
    "RecordAuthoritySettings",
    "DefaultRecordAuthorityService",
    "VaultSession",
    "build_record_authority_service",
    "DatabaseInfo",
    "EntryFailure",
    "FieldSpec",
    "RecordListing",
    "RecordPointer",
    "SchemaInitResult",
    "StoredRecord",
    "StoredSchema",
    "ErrorCategory",
    "ErrorDetail",
]
