"""Shared list / envelope schemas used across resources."""

import math
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from backoffice.schemas.base import BaseSchema

# Filter sentinels for `is null` / `not is null`
IS_NULL = "IS_NULL"
NOT_NULL = "NOT_NULL"


class DataProviderError(Exception):
    """Raised when a provider envelope is unwrapped after a failure."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ProviderResult(BaseModel):
    """Envelope returned by every data provider call."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[str] = None
    count: Optional[int] = None

    @classmethod
    def ok(cls, data: Any = None, count: Optional[int] = None) -> "ProviderResult":
        return cls(success=True, data=data, count=count)

    @classmethod
    def fail(cls, error: str, code: Optional[str] = None) -> "ProviderResult":
        return cls(success=False, error=error, code=code)

    def unwrap(self) -> Any:
        if not self.success:
            raise DataProviderError(self.error or "Unknown data provider error", self.code)
        return self.data


class ListParams(BaseSchema):
    """Pagination, sort and filter parameters for get_list."""

    page: int = Field(1, ge=1)
    per_page: int = Field(10, ge=1, le=1000)
    sort_field: Optional[str] = None
    sort_order: Literal["ASC", "DESC"] = "DESC"
    filters: dict[str, Any] = Field(default_factory=dict)
    select: str = "*"
    search: Optional[str] = None
    search_fields: list[str] = Field(default_factory=list)


class ListMeta(BaseModel):
    """Pagination metadata (1-based, inclusive from/to)."""

    model_config = ConfigDict(populate_by_name=True)

    current_page: int
    from_: int = Field(alias="from")
    last_page: int
    per_page: int
    to: int
    total: int

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "ListMeta":
        start = (page - 1) * per_page + 1
        return cls(
            current_page=page,
            from_=start,
            last_page=math.ceil(total / per_page) if per_page else 0,
            per_page=per_page,
            to=min(start + per_page - 1, total),
            total=total,
        )


class ListResult(BaseModel):
    """Items plus pagination metadata."""

    items: list[dict[str, Any]]
    meta: ListMeta


class SelectOption(BaseModel):
    label: str
    value: Any


class BulkFailure(BaseModel):
    id: str
    error: str


class BulkResult(BaseModel):
    """Outcome of a sequential bulk action: never aborts on first failure."""

    succeeded: list[str] = Field(default_factory=list)
    failed: list[BulkFailure] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


class TabConfig(BaseModel):
    key: str
    label: str
    color: str = "default"
    description: Optional[str] = None


class TabCount(TabConfig):
    count: int = 0
