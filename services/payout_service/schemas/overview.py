from datetime import datetime

from libs.common.currency import Amount
from pydantic import BaseModel
from services.vendor_service.schemas import VendorStatsResponse
from services.wallet_service.schemas import TopupStatsResponse


class WalletTotals(BaseModel):
    count: int
    total_balance: Amount


class PayoutStatusStats(BaseModel):
    count: int
    total_amount: Amount


class PayoutStatsResponse(BaseModel):
    pending: PayoutStatusStats
    processing: PayoutStatusStats
    success: PayoutStatusStats
    failed: PayoutStatusStats
    reversed: PayoutStatusStats
    needs_review: int


class AdminOverviewResponse(BaseModel):
    vendors: VendorStatsResponse
    wallets: WalletTotals
    topups: TopupStatsResponse
    payouts: PayoutStatsResponse
    generated_at: datetime
