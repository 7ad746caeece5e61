"""Payout service routers."""

from services.payout_service.routers.admin import router as admin_router
from services.payout_service.routers.beneficiaries import (
    router as beneficiaries_router,
)
from services.payout_service.routers.overview import router as overview_router
from services.payout_service.routers.payouts import router as payouts_router

__all__ = [
    "admin_router",
    "beneficiaries_router",
    "overview_router",
    "payouts_router",
]
