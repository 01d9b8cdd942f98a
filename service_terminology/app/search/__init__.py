"""
Search normalization shared by every entity search.
"""

from .entity_kinds import ENTITY_KINDS, EntityKind, get_entity_kind
from .models import NormalizedQuery, PfsParameter, ResultList, SearchRequest
from .normalizer import SearchNormalizer, add_wildcards, apply_active_filter, normalize
from .service import EntitySearchService, PersistenceStore

__all__ = [
    "ENTITY_KINDS",
    "EntityKind",
    "EntitySearchService",
    "NormalizedQuery",
    "PersistenceStore",
    "PfsParameter",
    "ResultList",
    "SearchNormalizer",
    "SearchRequest",
    "add_wildcards",
    "apply_active_filter",
    "get_entity_kind",
    "normalize",
]
