"""Admin wallet endpoints: top-up review and ledger audits."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.wallet_service.models import TopupStatus
from services.wallet_service.schemas import (
    LedgerEntryListResponse,
    TopupListResponse,
    TopupResolveRequest,
    TopupResponse,
    TopupStatsResponse,
    WalletAuditResponse,
    WalletResponse,
)
from services.wallet_service.services import ledger_ops, topup_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin", tags=["admin-wallet"])


# ---------------------------------------------------------------------------
# Top-up review
# ---------------------------------------------------------------------------


@router.get("/topups", response_model=TopupListResponse)
async def list_topups(
    topup_status: Optional[TopupStatus] = Query(None, alias="status"),
    vendor_id: Optional[uuid.UUID] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    topups, total = await topup_service.list_topups(
        db, status=topup_status, vendor_id=vendor_id, skip=skip, limit=limit
    )
    return TopupListResponse(topups=topups, total=total, skip=skip, limit=limit)


@router.get("/topups/stats", response_model=TopupStatsResponse)
async def get_topup_stats(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Count and total amount per status for the review dashboard."""
    return TopupStatsResponse(**await topup_service.topup_stats(db))


@router.get("/topups/{topup_id}", response_model=TopupResponse)
async def get_topup(
    topup_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await topup_service.get_topup(db, topup_id)


@router.post("/topups/{topup_id}/resolve", response_model=TopupResponse)
async def resolve_topup(
    topup_id: uuid.UUID,
    body: TopupResolveRequest,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Approve (credits the wallet) or reject (reason required) a top-up."""
    return await topup_service.resolve_topup(
        db,
        actor=admin,
        topup_id=topup_id,
        decision=body.decision,
        notes=body.notes,
    )


# ---------------------------------------------------------------------------
# Wallets
# ---------------------------------------------------------------------------


@router.get("/wallets/{vendor_id}", response_model=WalletResponse)
async def get_vendor_wallet(
    vendor_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await ledger_ops.get_wallet_by_vendor(db, vendor_id)


@router.get("/wallets/{vendor_id}/transactions", response_model=LedgerEntryListResponse)
async def list_vendor_transactions(
    vendor_id: uuid.UUID,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    wallet = await ledger_ops.get_wallet_by_vendor(db, vendor_id)
    entries, total = await ledger_ops.list_entries(
        db, wallet.id, skip=skip, limit=limit
    )
    return LedgerEntryListResponse(
        entries=entries, total=total, skip=skip, limit=limit
    )


@router.get("/wallets/{vendor_id}/audit", response_model=WalletAuditResponse)
async def audit_vendor_wallet(
    vendor_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Compare the cached balance with the sum of ledger entries."""
    wallet = await ledger_ops.get_wallet_by_vendor(db, vendor_id)
    return await ledger_ops.audit_wallet(db, wallet.id)
