from .base import PaginatedResponse, PaginationMeta

__all__ = ['PaginatedResponse', 'PaginationMeta']
