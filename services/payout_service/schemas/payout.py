"""Payout request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.currency import Amount
from pydantic import BaseModel, ConfigDict, Field, model_validator
from services.payout_service.models.enums import PayoutStatus, TransferType
from services.payout_service.schemas.beneficiary import BeneficiaryDetails


class PayoutInitiateRequest(BaseModel):
    """Pay a saved beneficiary (``beneficiary_id``) or inline details
    (``beneficiary``). ``transfer_type`` may switch a bank beneficiary between
    IMPS and NEFT."""

    amount: Amount
    beneficiary_id: Optional[uuid.UUID] = None
    beneficiary: Optional[BeneficiaryDetails] = None
    transfer_type: Optional[TransferType] = None
    narration: Optional[str] = Field(None, max_length=255)
    merchant_reference_id: Optional[str] = Field(None, max_length=64)

    @model_validator(mode="after")
    def one_destination(self):
        if self.beneficiary_id and self.beneficiary:
            raise ValueError("Provide either beneficiary_id or beneficiary, not both")
        return self


class PayoutResponse(BaseModel):
    id: uuid.UUID
    vendor_id: uuid.UUID
    wallet_id: uuid.UUID
    beneficiary_id: Optional[uuid.UUID] = None
    beneficiary_snapshot: dict
    merchant_reference_id: str
    amount: Amount
    currency: str
    transfer_type: TransferType
    status: PayoutStatus
    provider_transaction_id: Optional[str] = None
    utr: Optional[str] = None
    narration: Optional[str] = None
    debit_entry_id: uuid.UUID
    reversal_entry_id: Optional[uuid.UUID] = None
    provider_status: Optional[str] = None
    last_provider_error: Optional[str] = None
    reconcile_attempts: int
    last_checked_at: Optional[datetime] = None
    needs_manual_review: bool
    review_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PayoutInitiateResponse(BaseModel):
    transaction: PayoutResponse
    wallet_balance: Amount


class PayoutListResponse(BaseModel):
    payouts: list[PayoutResponse]
    total: int
    skip: int
    limit: int


class ProviderBalanceResponse(BaseModel):
    balance: Amount
    currency: str

    model_config = ConfigDict(from_attributes=True)


class ReconcileReportResponse(BaseModel):
    checked: int
    resolved: int
    flagged: int
    errors: int
    references: list[str]

    model_config = ConfigDict(from_attributes=True)
