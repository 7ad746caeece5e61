"""Vendor-facing wallet endpoints: balance, ledger history and top-ups."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_vendor
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.wallet_service.models import TopupStatus
from services.wallet_service.schemas import (
    BalanceResponse,
    LedgerEntryListResponse,
    TopupListResponse,
    TopupResponse,
    TopupSubmitRequest,
    WalletResponse,
)
from services.wallet_service.services import ledger_ops, topup_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/vendor/wallet", tags=["vendor-wallet"])


@router.get("", response_model=WalletResponse)
async def get_my_wallet(
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    return await ledger_ops.get_wallet_by_vendor(db, vendor.vendor_id())


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    """Display balance. Not serialized with concurrent payouts."""
    wallet = await ledger_ops.get_wallet_by_vendor(db, vendor.vendor_id())
    return BalanceResponse(
        wallet_id=wallet.id,
        vendor_id=wallet.vendor_id,
        balance=wallet.balance,
        currency=wallet.currency,
        updated_at=wallet.updated_at,
    )


@router.get("/transactions", response_model=LedgerEntryListResponse)
async def list_transactions(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    """Ledger history, newest first."""
    wallet = await ledger_ops.get_wallet_by_vendor(db, vendor.vendor_id())
    entries, total = await ledger_ops.list_entries(
        db, wallet.id, skip=skip, limit=limit
    )
    return LedgerEntryListResponse(
        entries=entries, total=total, skip=skip, limit=limit
    )


@router.post(
    "/topups", response_model=TopupResponse, status_code=status.HTTP_201_CREATED
)
async def submit_topup(
    body: TopupSubmitRequest,
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    """Request a wallet top-up. Credited only once an admin approves it."""
    return await topup_service.submit_topup(
        db, actor=vendor, vendor_id=vendor.vendor_id(), amount=body.amount
    )


@router.get("/topups", response_model=TopupListResponse)
async def list_my_topups(
    topup_status: Optional[TopupStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    topups, total = await topup_service.list_topups(
        db,
        status=topup_status,
        vendor_id=vendor.vendor_id(),
        skip=skip,
        limit=limit,
    )
    return TopupListResponse(topups=topups, total=total, skip=skip, limit=limit)
