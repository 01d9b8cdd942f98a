"""
Translation of generic search requests into backend queries.

Every entity search goes through the same steps: take the caller's query,
apply the active-only filter, settle paging and sort defaults, then add
prefix wildcards to the terms the entity's index can match that way.
"""

import re
from typing import Mapping, Optional, Union

from shared.logging import get_logger

from .entity_kinds import ENTITY_KINDS, EntityKind
from .models import NormalizedQuery, PfsParameter, SearchRequest


ACTIVE_FILTER = "active:true"

# Quoted phrase (optionally field-qualified), a parenthesis, or a plain term.
_TOKEN = re.compile(r'[^\s()"]*"[^"]*"?|[()]|[^\s()"]+')

_OPERATORS = frozenset({"AND", "OR", "NOT", "TO", "&&", "||", "!"})

# Values made only of these characters can take a trailing wildcard; anything
# else (wildcards, fuzzy/boost markers, ranges, escapes) is left untouched.
_EXPANDABLE = re.compile(r"^[\w.@#&$=\-]+$")

_MODIFIERS = "+-!"


def _is_expandable(value: str) -> bool:
    return bool(value) and _EXPANDABLE.match(value) is not None


def apply_active_filter(query: str) -> str:
    """Restrict ``query`` to active records."""
    return ACTIVE_FILTER if query == "" else f"{query} AND {ACTIVE_FILTER}"


def add_wildcards(query: str, kind: EntityKind) -> str:
    """Append ``*`` to bare terms and to values of the kind's wildcard fields.

    Operators, parentheses, quoted phrases, fields outside the kind's
    wildcard set and terms that already carry a wildcard are kept as is,
    so applying this twice gives the same result as applying it once.
    """
    if not query:
        return query

    def expand(match: "re.Match[str]") -> str:
        term = match.group(0)
        if term in _OPERATORS or term in ("(", ")") or '"' in term:
            return term

        body = term.lstrip(_MODIFIERS)
        prefix = term[:len(term) - len(body)]

        if ":" in body:
            field, value = body.split(":", 1)
            if field in kind.wildcard_fields and _is_expandable(value):
                return f"{prefix}{field}:{value}*"
            return term

        if kind.expands_bare_terms and _is_expandable(body):
            return f"{prefix}{body}*"
        return term

    return _TOKEN.sub(expand, query)


class SearchNormalizer:
    """Builds the backend query and paging parameters for an entity search."""

    def __init__(self, kinds: Optional[Mapping[str, EntityKind]] = None):
        self.kinds = kinds if kinds is not None else ENTITY_KINDS
        self.logger = get_logger("terminology.search.normalizer")

    def resolve_kind(self, entity_kind: Union[str, EntityKind]) -> EntityKind:
        if isinstance(entity_kind, EntityKind):
            return entity_kind
        try:
            return self.kinds[entity_kind]
        except KeyError:
            raise ValueError(f"Unknown entity kind: {entity_kind}") from None

    def normalize(self, request: Optional[SearchRequest], entity_kind: Union[str, EntityKind]) -> NormalizedQuery:
        kind = self.resolve_kind(entity_kind)
        request = request or SearchRequest()

        query = request.query.strip() if request.query and request.query.strip() else ""

        active_only = request.active_only
        if active_only is None:
            active_only = kind.active_by_default
        if active_only:
            query = apply_active_filter(query)

        if query:
            query = add_wildcards(query, kind)

        pfs = PfsParameter(
            offset=request.offset,
            limit=request.limit,
            sort=request.sort if request.sort is not None else kind.default_sort,
            ascending=bool(request.sort_ascending),
        )

        self.logger.debug("Normalized search", entity_kind=kind.name, query=query, pfs=pfs.model_dump())
        return NormalizedQuery(query=query, pfs=pfs)


_default_normalizer = SearchNormalizer()


def normalize(request: Optional[SearchRequest], entity_kind: Union[str, EntityKind]) -> NormalizedQuery:
    """Normalize ``request`` with the built-in entity kinds."""
    return _default_normalizer.normalize(request, entity_kind)
