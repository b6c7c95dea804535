"""Component identifiers for blobvault.

Every configurable component declares one canonical id in its
``component.py``. The id prefix (``substrate_``, ``service_``, ``actor_``)
selects the settings namespace the component reads from.
"""

from __future__ import annotations

import re
from typing import Final, Literal, NewType

ComponentId = NewType("ComponentId", str)
ComponentKind = Literal["substrate", "service", "actor"]

COMPONENT_KINDS: Final[frozenset[str]] = frozenset({"substrate", "service", "actor"})
_COMPONENT_ID_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z][a-z0-9_]{1,62}$")


class ManifestError(ValueError):
    """Raised when a component identifier is malformed."""


def validate_component_id(component_id: ComponentId) -> None:
    """Validate canonical component id format and kind prefix."""
    if not _COMPONENT_ID_RE.fullmatch(component_id):
        raise ManifestError(
            f"invalid component id '{component_id}': expected lowercase snake_case"
        )
    kind, separator, name = component_id.partition("_")
    if separator == "" or name == "" or kind not in COMPONENT_KINDS:
        raise ManifestError(
            f"invalid component id '{component_id}': expected one of "
            f"{sorted(COMPONENT_KINDS)} as prefix"
        )


def component_kind(component_id: ComponentId) -> ComponentKind:
    """Return the kind prefix of one validated component id."""
    validate_component_id(component_id)
    kind, _, _ = component_id.partition("_")
    return kind  # type: ignore[return-value]
