"""Admin payout endpoints: oversight, status checks and reconciliation."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin, require_operator
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.payout_service.models import PayoutStatus
from services.payout_service.payninja_client import (
    PaymentRailProvider,
    get_payout_provider,
)
from services.payout_service.schemas import (
    PayoutListResponse,
    PayoutResponse,
    ProviderBalanceResponse,
    ReconcileReportResponse,
)
from services.payout_service.services import payout_engine
from services.payout_service.services.reconciliation import reconcile_stuck_payouts
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/payouts", tags=["admin-payouts"])


@router.get("", response_model=PayoutListResponse)
async def list_payouts(
    vendor_id: Optional[uuid.UUID] = None,
    payout_status: Optional[PayoutStatus] = Query(None, alias="status"),
    needs_review: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    payouts, total = await payout_engine.list_payouts(
        db,
        actor=admin,
        vendor_id=vendor_id,
        status=payout_status,
        needs_review=needs_review,
        skip=skip,
        limit=limit,
    )
    return PayoutListResponse(payouts=payouts, total=total, skip=skip, limit=limit)


@router.get("/provider-balance", response_model=ProviderBalanceResponse)
async def get_provider_balance(
    admin: AuthUser = Depends(require_admin),
    provider: PaymentRailProvider = Depends(get_payout_provider),
):
    """Merchant float held at the payment rail."""
    return await payout_engine.provider_balance(actor=admin, provider=provider)


@router.post("/reconcile", response_model=ReconcileReportResponse)
async def run_reconciliation(
    operator: AuthUser = Depends(require_operator),
    provider: PaymentRailProvider = Depends(get_payout_provider),
):
    """Run one reconciliation pass now instead of waiting for the worker."""
    return await reconcile_stuck_payouts(actor=operator, provider=provider)


@router.get("/{reference}", response_model=PayoutResponse)
async def get_payout(
    reference: str,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await payout_engine.get_payout(db, actor=admin, reference=reference)


@router.post("/{reference}/check-status", response_model=PayoutResponse)
async def check_payout_status(
    reference: str,
    operator: AuthUser = Depends(require_operator),
    db: AsyncSession = Depends(get_async_db),
    provider: PaymentRailProvider = Depends(get_payout_provider),
):
    return await payout_engine.check_status(
        db, actor=operator, reference=reference, provider=provider
    )
