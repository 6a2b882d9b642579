import asyncio
import logging
import math
from typing import Any, Dict, Mapping, Optional, Union

from config import get_settings
from .criteria import build_search_condition, build_where, is_truthy, merge_filters, parse_int
from .schemas import ListQuery, QueryConfig, QueryInput

logger = logging.getLogger(__name__)


async def dynamic_query_builder(
    config: Optional[Union[QueryConfig, Mapping[str, Any]]] = None,
    query: Optional[QueryInput] = None,
    **options: Any,
) -> Dict[str, Any]:
    """
    Fetch one page of records plus the total count, and wrap them in a
    {"meta": ..., "data": ...} envelope.

    Args:
        config: Data source and caller-side options, as a QueryConfig or a
            plain mapping. Can also be given as keyword arguments (data_source=..., searchable_fields=...,
            forced_filters=..., includes=..., relation_filters=...).
        query: The request, either a ListQuery or a raw mapping such as a
            decoded query string. Anything besides page, limit, search,
            sortBy and order is used as a filter.

    Returns:
        The envelope dict. Errors from the data source are not caught.
    """
    if config is not None and options:
        raise TypeError("Pass either config or keyword options, not both")
    if config is None:
        config = QueryConfig(**options)
    elif not isinstance(config, QueryConfig):
        config = QueryConfig(**config)
    if query is None:
        query = {}
    if not isinstance(query, ListQuery):
        query = ListQuery.from_mapping(query)

    settings = get_settings()
    sort_by = query.sort_by if query.sort_by is not None else settings.DEFAULT_SORT_BY
    order = query.order if query.order is not None else settings.DEFAULT_ORDER

    limit = parse_int(query.limit) if is_truthy(query.limit) else None
    page = parse_int(query.page)
    paginated = is_truthy(limit)
    skip = (page - 1) * limit if paginated else 0

    search_condition = build_search_condition(query.search, config.searchable_fields)
    filters = merge_filters(query.filters, config.forced_filters)
    where = build_where(search_condition, filters, config.relation_filters)
    logger.debug("List query where=%s skip=%s take=%s orderBy=%s:%s", where, skip, limit, sort_by, order)

    data, total = await asyncio.gather(
        config.data_source.list({
            "where": where,
            "skip": skip,
            "take": limit,
            "orderBy": {sort_by: order},
            "include": config.includes or {},
        }),
        config.data_source.count({"where": where}),
    )

    total_pages = math.ceil(total / limit) if paginated else 1
    logger.debug("List query matched %s item(s) over %s page(s)", total, total_pages)

    return {
        "meta": {
            "currentPage": page,
            "totalPages": total_pages,
            "totalItems": total,
            "perPage": limit if limit is not None else total,
        },
        "data": data,
    }
