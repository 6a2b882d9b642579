from typing import Any, Dict

from fastapi import Request


def list_query_params(request: Request) -> Dict[str, Any]:
    """
    Query string as a flat dict, ready for dynamic_query_builder.
    Repeated keys keep their last value.
    """
    return dict(request.query_params)
