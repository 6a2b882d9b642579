import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

_INT_PREFIX = re.compile(r"^\s*([+-]?[0-9]+)")


def parse_int(value: Any) -> Union[int, float]:
    """
    Parse the leading integer of a query-string value.

    Mirrors JavaScript's parseInt(value, 10): leading whitespace and a sign
    are allowed, trailing garbage is ignored, and anything without leading
    digits gives NaN instead of raising.
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return math.nan
        return int(value)
    match = _INT_PREFIX.match(str(value)) if value is not None else None
    if not match:
        return math.nan
    return int(match.group(1))


def is_truthy(value: Any) -> bool:
    # None, "", 0 and NaN are all "not given"; the string "0" is given
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def nest_field_path(path: str, value: Any) -> Dict[str, Any]:
    """
    Turn "profile.city" into {"profile": {"city": value}}.
    """
    segments = path.split(".")
    condition = value
    for segment in reversed(segments):
        condition = {segment: condition}
    return condition


def build_search_condition(search: Any, searchable_fields: Iterable[str]) -> Dict[str, Any]:
    fields = list(searchable_fields or [])
    if not search or not fields:
        return {}
    return {
        "OR": [
            nest_field_path(field, {"contains": search, "caseInsensitive": True})
            for field in fields
        ]
    }


def merge_filters(filters: Mapping[str, Any], forced_filters: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Ad-hoc filters first, then forced filters on top. A forced filter always
    replaces an ad-hoc filter with the same key.
    """
    merged: Dict[str, Any] = {}
    for key, value in (filters or {}).items():
        merged[key] = value
    for key, value in (forced_filters or {}).items():
        merged[key] = value
    return merged


def build_where(
    search_condition: Mapping[str, Any],
    filters: Mapping[str, Any],
    relation_filters: Optional[List[Mapping[str, Any]]] = None,
) -> Dict[str, Any]:
    where: Dict[str, Any] = {}
    where.update(search_condition)
    where.update(filters)
    if relation_filters:
        where["AND"] = list(relation_filters)
    return where
