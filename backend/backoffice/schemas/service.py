"""Service catalog, provider and service request schemas."""

from typing import Literal, Optional

from pydantic import Field

from backoffice.models.enums import BulkServiceAction, ServiceRequestStatus
from backoffice.schemas.base import BaseSchema


class ServiceFilters(BaseSchema):
    status: Optional[Literal["all", "active", "inactive"]] = "all"
    category: Optional[str] = None
    provider_id: Optional[str] = None
    search: Optional[str] = None


class ServiceCreate(BaseSchema):
    name: str = Field(..., min_length=2, max_length=255)
    category: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None
    base_price: float = Field(..., ge=0)
    provider_id: Optional[str] = None
    is_active: bool = True
    is_vip_only: bool = False


class ServiceUpdate(BaseSchema):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    category: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    provider_id: Optional[str] = None
    is_active: Optional[bool] = None
    is_vip_only: Optional[bool] = None


class BulkServiceRequest(BaseSchema):
    action: BulkServiceAction
    ids: list[str] = Field(..., min_length=1)


class ServiceStats(BaseSchema):
    total: int = 0
    active: int = 0
    inactive: int = 0
    vip_only: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)
    average_price: float = 0.0


class ProviderFilters(BaseSchema):
    status: Optional[Literal["all", "verified", "pending"]] = "all"
    search: Optional[str] = None


class ProviderStats(BaseSchema):
    total: int = 0
    verified: int = 0
    pending: int = 0
    locked: int = 0
    services_per_provider: dict[str, int] = Field(default_factory=dict)


class BulkIdsRequest(BaseSchema):
    ids: list[str] = Field(..., min_length=1)


class ServiceRequestFilters(BaseSchema):
    status: Optional[ServiceRequestStatus] = None
    search: Optional[str] = None


class CancelRequest(BaseSchema):
    reason: Optional[str] = Field(None, max_length=500)


class ServiceRequestStats(BaseSchema):
    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    completed_amount: float = 0.0
