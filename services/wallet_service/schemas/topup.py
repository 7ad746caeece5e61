"""Topup request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.currency import Amount
from pydantic import BaseModel, ConfigDict, Field
from services.wallet_service.models.enums import TopupDecision, TopupStatus


class TopupSubmitRequest(BaseModel):
    amount: Amount = Field(..., description="Rupees as a decimal string, e.g. \"5000.00\"")


class TopupResolveRequest(BaseModel):
    decision: TopupDecision
    # Required when rejecting; stored as the rejection reason
    notes: Optional[str] = Field(None, max_length=1000)


class TopupResponse(BaseModel):
    id: uuid.UUID
    reference: str
    vendor_id: uuid.UUID
    wallet_id: uuid.UUID
    amount: Amount
    status: TopupStatus
    admin_id: Optional[str] = None
    admin_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    ledger_entry_id: Optional[uuid.UUID] = None
    created_at: datetime
    processed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TopupListResponse(BaseModel):
    topups: list[TopupResponse]
    total: int
    skip: int
    limit: int


class TopupStatusStats(BaseModel):
    count: int
    total_amount: Amount


class TopupStatsResponse(BaseModel):
    pending: TopupStatusStats
    approved: TopupStatusStats
    rejected: TopupStatusStats
