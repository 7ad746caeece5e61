"""Vendor request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from services.vendor_service.models import VendorAction, VendorStatus


class VendorRegisterRequest(BaseModel):
    email: EmailStr
    business_name: str = Field(..., min_length=1, max_length=200)


class VendorStatusUpdate(BaseModel):
    action: VendorAction


class VendorResponse(BaseModel):
    id: uuid.UUID
    email: str
    business_name: str
    status: VendorStatus
    status_changed_by: Optional[str] = None
    status_changed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VendorListResponse(BaseModel):
    vendors: list[VendorResponse]
    total: int
    skip: int
    limit: int


class VendorStatsResponse(BaseModel):
    total: int
    pending: int
    active: int
    suspended: int
