"""
Entity search facade over a persistence store.
"""

import time
from typing import Any, AsyncContextManager, Optional, Protocol, Union

from shared.errors import NotFoundError
from shared.logging import get_logger

from .entity_kinds import EntityKind
from .models import PfsParameter, ResultList, SearchRequest
from .normalizer import SearchNormalizer


class PersistenceStore(Protocol):
    """Narrow interface of the entity store consumed by search services."""

    async def get(self, entity_id: str, kind: str) -> Optional[Any]:
        ...

    async def find(self, query: str, pfs: Optional[PfsParameter], kind: str) -> ResultList:
        ...

    async def add(self, entity: Any) -> Any:
        ...

    async def update(self, entity: Any) -> Any:
        ...

    def transaction(self) -> AsyncContextManager[Any]:
        ...


class EntitySearchService:
    """Runs normalized searches and id lookups for any entity kind."""

    def __init__(self, store: PersistenceStore, normalizer: Optional[SearchNormalizer] = None):
        self.store = store
        self.normalizer = normalizer or SearchNormalizer()
        self.logger = get_logger("terminology.search.service")

    async def search(self, request: Optional[SearchRequest], entity_kind: Union[str, EntityKind]) -> ResultList:
        """Search ``entity_kind`` with the normalized form of ``request``."""
        kind = self.normalizer.resolve_kind(entity_kind)
        start = time.time()

        normalized = self.normalizer.normalize(request, kind)
        self.logger.info("Searching entities", entity_kind=kind.name, query=normalized.query)

        results = await self.store.find(normalized.query, normalized.pfs, kind.name)
        results.time_taken = int((time.time() - start) * 1000)
        results.total_known = True
        return results

    async def get(self, entity_id: str, entity_kind: Union[str, EntityKind]) -> Any:
        """Fetch one entity by id, raising ``NotFoundError`` when absent."""
        kind = self.normalizer.resolve_kind(entity_kind)
        entity = await self.store.get(entity_id, kind.name)
        if entity is None:
            raise NotFoundError(
                f"{kind.name} {entity_id} not found",
                details={"entity_kind": kind.name, "id": entity_id}
            )
        return entity

    async def find_single(self, query: str, entity_kind: Union[str, EntityKind]) -> Any:
        """Return the first entity matching a raw backend query."""
        kind = self.normalizer.resolve_kind(entity_kind)
        results = await self.store.find(query, None, kind.name)
        if not results.items:
            raise NotFoundError(
                f"No {kind.name} matches query",
                details={"entity_kind": kind.name, "query": query}
            )
        return results.items[0]
