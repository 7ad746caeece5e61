"""Admin dashboard overview across vendors, wallets, top-ups and payouts."""

from libs.common.datetime_utils import utc_now
from services.payout_service.services.payout_engine import payout_stats
from services.vendor_service.services.vendor_ops import vendor_stats
from services.wallet_service.services.ledger_ops import wallet_totals
from services.wallet_service.services.topup_service import topup_stats
from sqlalchemy.ext.asyncio import AsyncSession


async def admin_overview(db: AsyncSession) -> dict:
    return {
        "vendors": await vendor_stats(db),
        "wallets": await wallet_totals(db),
        "topups": await topup_stats(db),
        "payouts": await payout_stats(db),
        "generated_at": utc_now(),
    }
