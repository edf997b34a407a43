"""Property moderation schemas."""

from typing import Literal, Optional

from pydantic import Field

from backoffice.models.enums import BulkPropertyAction, ValidationStatus
from backoffice.schemas.base import BaseSchema


class PropertyFilters(BaseSchema):
    status: Optional[Literal["all", "pending", "approved", "rejected"]] = "all"
    search: Optional[str] = None
    owner_id: Optional[str] = None
    city: Optional[str] = None


class PropertyUpdate(BaseSchema):
    """Admin edits of a listing."""

    title: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=255)
    price_per_night: Optional[float] = Field(None, ge=0)
    max_guests: Optional[int] = Field(None, ge=1)
    validation_status: Optional[ValidationStatus] = None
    moderation_notes: Optional[str] = None


class ModerationRequest(BaseSchema):
    notes: Optional[str] = Field(None, max_length=2000)


class BulkPropertyRequest(BaseSchema):
    action: BulkPropertyAction
    ids: list[str] = Field(..., min_length=1)
    notes: Optional[str] = None


class PropertyStats(BaseSchema):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
