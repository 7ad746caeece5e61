"""Vendor payout endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_vendor
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.payout_service.models import PayoutStatus
from services.payout_service.payninja_client import (
    PaymentRailProvider,
    get_payout_provider,
)
from services.payout_service.schemas import (
    PayoutInitiateRequest,
    PayoutInitiateResponse,
    PayoutListResponse,
    PayoutResponse,
)
from services.payout_service.services import payout_engine
from services.wallet_service.services.ledger_ops import balance
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/vendor/payouts", tags=["payouts"])


@router.post(
    "", response_model=PayoutInitiateResponse, status_code=status.HTTP_201_CREATED
)
async def initiate_payout(
    body: PayoutInitiateRequest,
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
    provider: PaymentRailProvider = Depends(get_payout_provider),
):
    """Debit the wallet and send the transfer.

    Returns the payout in ``processing`` once the provider accepts it. If the
    provider is unreachable (502) or refuses (400) the debit has already been
    refunded.
    """
    payout = await payout_engine.initiate_payout(
        db,
        actor=vendor,
        vendor_id=vendor.vendor_id(),
        amount=body.amount,
        provider=provider,
        beneficiary_id=body.beneficiary_id,
        beneficiary=body.beneficiary.model_dump() if body.beneficiary else None,
        transfer_type=body.transfer_type,
        narration=body.narration,
        merchant_reference_id=body.merchant_reference_id,
    )
    return PayoutInitiateResponse(
        transaction=payout, wallet_balance=await balance(db, payout.wallet_id)
    )


@router.get("", response_model=PayoutListResponse)
async def list_my_payouts(
    payout_status: Optional[PayoutStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    payouts, total = await payout_engine.list_payouts(
        db,
        actor=vendor,
        vendor_id=vendor.vendor_id(),
        status=payout_status,
        skip=skip,
        limit=limit,
    )
    return PayoutListResponse(payouts=payouts, total=total, skip=skip, limit=limit)


@router.get("/{reference}", response_model=PayoutResponse)
async def get_payout(
    reference: str,
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    return await payout_engine.get_payout(db, actor=vendor, reference=reference)


@router.post("/{reference}/check-status", response_model=PayoutResponse)
async def check_payout_status(
    reference: str,
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
    provider: PaymentRailProvider = Depends(get_payout_provider),
):
    """Ask the provider for the latest status. A failure refunds the debit."""
    return await payout_engine.check_status(
        db, actor=vendor, reference=reference, provider=provider
    )
