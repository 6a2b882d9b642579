# schemas/base.py
from typing import List, TypeVar, Generic
from pydantic import BaseModel, Field

T = TypeVar('T')

class PaginationMeta(BaseModel):
    currentPage: int = Field(..., description="Page number as requested")
    totalPages: int = Field(..., description="Number of pages at the current page size")
    totalItems: int = Field(..., description="Total number of items matching the query")
    perPage: int = Field(..., description="Page size, or the total when the request is unpaginated")

class PaginatedResponse(BaseModel, Generic[T]):
    meta: PaginationMeta
    data: List[T]

    class Config:
        from_attributes = True
