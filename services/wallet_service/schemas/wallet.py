"""Wallet request/response schemas."""

import uuid
from datetime import datetime

from libs.common.currency import Amount
from pydantic import BaseModel, ConfigDict


class WalletResponse(BaseModel):
    id: uuid.UUID
    vendor_id: uuid.UUID
    balance: Amount
    currency: str
    lifetime_credited: Amount
    lifetime_debited: Amount
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BalanceResponse(BaseModel):
    """Lightweight balance read for the vendor dashboard."""

    wallet_id: uuid.UUID
    vendor_id: uuid.UUID
    balance: Amount
    currency: str
    updated_at: datetime


class WalletAuditResponse(BaseModel):
    wallet_id: uuid.UUID
    cached_balance: Amount
    ledger_balance: Amount
    entry_count: int
    consistent: bool

    model_config = ConfigDict(from_attributes=True)
