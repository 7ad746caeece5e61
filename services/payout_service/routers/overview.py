"""Admin dashboard overview endpoint."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.payout_service.schemas import AdminOverviewResponse
from services.payout_service.services.overview import admin_overview
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin", tags=["admin-overview"])


@router.get("/overview", response_model=AdminOverviewResponse)
async def get_admin_overview(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Vendor, wallet, top-up and payout figures for the admin dashboard."""
    return AdminOverviewResponse(**await admin_overview(db))
