"""
Searchable entity kinds and the index fields that accept wildcards.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional


@dataclass(frozen=True)
class EntityKind:
    """Search traits of one entity type."""
    name: str
    wildcard_fields: FrozenSet[str] = field(default_factory=frozenset)
    default_sort: Optional[str] = None
    active_by_default: bool = False

    @property
    def expands_bare_terms(self) -> bool:
        return bool(self.wildcard_fields)


# Identifier-like fields are indexed as strings but only ever matched exactly.
EXACT_MATCH_FIELDS = frozenset({
    "id",
    "organizationId",
    "projectId",
    "editionShortName",
    "editionBranch",
    "editBranchId",
    "refsetBranchId",
    "moduleId",
})


def _kind(name: str, fields: Iterable[str], **kwargs) -> EntityKind:
    return EntityKind(name=name, wildcard_fields=frozenset(fields) - EXACT_MATCH_FIELDS, **kwargs)


ENTITY_KINDS: Dict[str, EntityKind] = {
    kind.name: kind
    for kind in (
        _kind("edition", ["name", "shortName", "abbreviation", "namespace", "organizationName"],
              active_by_default=True),
        _kind("project", ["name", "description", "editionName", "organizationName"],
              default_sort="name", active_by_default=True),
        _kind("refset", ["name", "editionName", "organizationName", "versionStatus",
                         "workflowStatus", "assignedUser"]),
        _kind("map_project", ["name", "description", "editionName"],
              default_sort="name", active_by_default=True),
        _kind("map_set", ["name", "version", "editionName"]),
        _kind("map_advice", ["name", "detail"]),
        _kind("map_relation", ["name", "abbreviation"]),
        _kind("organization", ["name", "description"], default_sort="name", active_by_default=True),
        _kind("team", ["name", "description", "organizationName"], default_sort="name", active_by_default=True),
        _kind("user", ["name", "userName", "email"], active_by_default=True),
        _kind("artifact", ["fileName", "fileType", "description"], active_by_default=True),
    )
}


def get_entity_kind(kind: str) -> EntityKind:
    """Look up a registered entity kind by name."""
    try:
        return ENTITY_KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown entity kind: {kind}") from None
