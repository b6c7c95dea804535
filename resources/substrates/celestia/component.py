"""Component declaration for the Celestia blob substrate resource."""

from __future__ import annotations

from packages.blobvault_shared.manifest import ComponentId, validate_component_id

RESOURCE_COMPONENT_ID = ComponentId("substrate_celestia")
OWNER_SERVICE_ID = ComponentId("service_record_authority")

validate_component_id(RESOURCE_COMPONENT_ID)
