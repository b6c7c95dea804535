"""Component declaration for Record Authority Service."""

from __future__ import annotations

from packages.blobvault_shared.manifest import ComponentId, validate_component_id

SERVICE_COMPONENT_ID = ComponentId("service_record_authority")
OWNED_RESOURCE_IDS = frozenset({ComponentId("substrate_celestia")})

validate_component_id(SERVICE_COMPONENT_ID)
