from pydantic import BaseModel, Field
from typing import Any, Dict, List, Mapping, Optional, Union

RESERVED_PARAMS = ("page", "limit", "search", "sortBy", "order")


class ListQuery(BaseModel):
    """
    A list request split into its paging/sorting parameters and the
    ad-hoc filters that remain.

    Values are kept exactly as received (usually strings decoded from a URL
    query string). Nothing is validated here.
    """
    page: Any = 1
    limit: Any = None
    search: Any = None
    sort_by: Optional[str] = None
    order: Optional[str] = None
    filters: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, query: Mapping[str, Any]) -> "ListQuery":
        filters = {key: value for key, value in query.items() if key not in RESERVED_PARAMS}
        return cls(
            page=query.get("page", 1),
            limit=query.get("limit"),
            search=query.get("search"),
            sort_by=query.get("sortBy"),
            order=query.get("order"),
            filters=filters,
        )


class QueryConfig(BaseModel):
    data_source: Any
    searchable_fields: List[str] = Field(default_factory=list)
    forced_filters: Dict[str, Any] = Field(default_factory=dict)
    includes: Optional[Dict[str, Any]] = Field(default_factory=dict)
    relation_filters: List[Dict[str, Any]] = Field(default_factory=list)


QueryInput = Union[ListQuery, Mapping[str, Any]]
