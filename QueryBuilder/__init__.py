from .builder import dynamic_query_builder
from .criteria import build_search_condition, build_where, merge_filters, nest_field_path
from .datasource import SQLAlchemyDataSource
from .dependencies import list_query_params
from .exceptions import QueryTranslationError
from .schemas import ListQuery, QueryConfig

__all__ = [
    'dynamic_query_builder',
    'build_search_condition',
    'build_where',
    'merge_filters',
    'nest_field_path',
    'SQLAlchemyDataSource',
    'list_query_params',
    'QueryTranslationError',
    'ListQuery',
    'QueryConfig',
]
