"""
Search data models shared by every entity search.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchRequest(BaseModel):
    """Generic search request supplied by a caller."""
    model_config = ConfigDict(frozen=True)

    query: Optional[str] = Field(None, description="Free-text query in the backend query language")
    active_only: Optional[bool] = Field(None, description="Restrict results to active records")
    offset: Optional[int] = Field(None, ge=0, description="Start index of the results")
    limit: Optional[int] = Field(None, gt=0, description="Maximum number of results")
    sort: Optional[str] = Field(None, description="Sort field")
    sort_ascending: Optional[bool] = Field(None, description="Sort ascending (true) or descending (false)")


class PfsParameter(BaseModel):
    """Paging, filtering and sorting parameters for a backend search."""
    model_config = ConfigDict(frozen=True)

    offset: Optional[int] = Field(None, ge=0, description="Start index; backend default when unset")
    limit: Optional[int] = Field(None, gt=0, description="Page size; backend default when unset")
    sort: Optional[str] = Field(None, description="Sort field")
    ascending: bool = Field(False, description="Sort direction")


class NormalizedQuery(BaseModel):
    """Backend query string plus pagination derived from a SearchRequest."""
    model_config = ConfigDict(frozen=True)

    query: str = Field("", description="Backend query; empty matches all records")
    pfs: PfsParameter = Field(default_factory=PfsParameter)

    @property
    def matches_all(self) -> bool:
        return self.query == ""


class ResultList(BaseModel):
    """One page of search results."""

    items: List[Any] = Field(default_factory=list)
    total: int = 0
    total_known: bool = False
    time_taken: Optional[int] = Field(None, description="Search time in milliseconds")
