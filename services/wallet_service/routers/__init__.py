"""Wallet service routers."""

from services.wallet_service.routers.admin import router as admin_router
from services.wallet_service.routers.vendor import router as vendor_router

__all__ = [
    "admin_router",
    "vendor_router",
]
