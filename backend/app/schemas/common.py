from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class Pagination(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int

    @classmethod
    def build(cls, page: int, page_size: int, total_count: int) -> Pagination:
        return cls(
            page=page,
            page_size=page_size,
            total_count=total_count,
            total_pages=math.ceil(total_count / page_size) if page_size else 0,
        )


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope shared by every endpoint."""

    success: bool = True
    message: str | None = None
    data: DataT


class PaginatedResponse(ApiResponse[DataT], Generic[DataT]):
    pagination: Pagination


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
