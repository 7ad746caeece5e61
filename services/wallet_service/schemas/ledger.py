"""Ledger entry schemas."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.currency import Amount
from pydantic import BaseModel, ConfigDict
from services.wallet_service.models.enums import LedgerEntryType


class LedgerEntryResponse(BaseModel):
    id: uuid.UUID
    wallet_id: uuid.UUID
    entry_type: LedgerEntryType
    amount: Amount
    balance_after: Amount
    source_type: str
    source_ref: str
    reversal_of_entry_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LedgerEntryListResponse(BaseModel):
    entries: list[LedgerEntryResponse]
    total: int
    skip: int
    limit: int
