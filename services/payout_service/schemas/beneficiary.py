"""Beneficiary request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.payout_service.models.enums import TransferType


class BeneficiaryDetails(BaseModel):
    """Destination fields; which ones are required depends on ``transfer_type``."""

    name: str = Field(..., max_length=200)
    phone_number: str = Field(..., description="Exactly 10 digits")
    transfer_type: TransferType
    vpa_address: Optional[str] = Field(None, max_length=255)
    account_number: Optional[str] = Field(None, max_length=34)
    ifsc: Optional[str] = Field(None, max_length=11)
    bank_name: Optional[str] = Field(None, max_length=200)


class BeneficiaryCreate(BeneficiaryDetails):
    pass


class BeneficiaryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    phone_number: Optional[str] = None
    transfer_type: Optional[TransferType] = None
    vpa_address: Optional[str] = Field(None, max_length=255)
    account_number: Optional[str] = Field(None, max_length=34)
    ifsc: Optional[str] = Field(None, max_length=11)
    bank_name: Optional[str] = Field(None, max_length=200)


class BeneficiaryResponse(BaseModel):
    id: uuid.UUID
    vendor_id: uuid.UUID
    name: str
    phone_number: str
    transfer_type: TransferType
    vpa_address: Optional[str] = None
    account_number: Optional[str] = None
    ifsc: Optional[str] = None
    bank_name: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BeneficiaryListResponse(BaseModel):
    beneficiaries: list[BeneficiaryResponse]
    total: int
    skip: int
    limit: int
