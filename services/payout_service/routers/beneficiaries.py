"""Vendor beneficiary management endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from libs.auth.dependencies import require_vendor
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.payout_service.models import TransferType
from services.payout_service.schemas import (
    BeneficiaryCreate,
    BeneficiaryListResponse,
    BeneficiaryResponse,
    BeneficiaryUpdate,
)
from services.payout_service.services import beneficiary_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/vendor/beneficiaries", tags=["beneficiaries"])


@router.post(
    "", response_model=BeneficiaryResponse, status_code=status.HTTP_201_CREATED
)
async def create_beneficiary(
    body: BeneficiaryCreate,
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    return await beneficiary_service.create_beneficiary(
        db, actor=vendor, vendor_id=vendor.vendor_id(), **body.model_dump()
    )


@router.get("", response_model=BeneficiaryListResponse)
async def list_beneficiaries(
    transfer_type: Optional[TransferType] = None,
    is_active: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    beneficiaries, total = await beneficiary_service.list_beneficiaries(
        db,
        actor=vendor,
        vendor_id=vendor.vendor_id(),
        transfer_type=transfer_type,
        is_active=is_active,
        skip=skip,
        limit=limit,
    )
    return BeneficiaryListResponse(
        beneficiaries=beneficiaries, total=total, skip=skip, limit=limit
    )


@router.get("/{beneficiary_id}", response_model=BeneficiaryResponse)
async def get_beneficiary(
    beneficiary_id: uuid.UUID,
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    return await beneficiary_service.get_beneficiary(
        db, actor=vendor, beneficiary_id=beneficiary_id
    )


@router.patch("/{beneficiary_id}", response_model=BeneficiaryResponse)
async def update_beneficiary(
    beneficiary_id: uuid.UUID,
    body: BeneficiaryUpdate,
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    """Partial update. The merged beneficiary is validated as a whole."""
    return await beneficiary_service.update_beneficiary(
        db,
        actor=vendor,
        beneficiary_id=beneficiary_id,
        changes=body.model_dump(exclude_unset=True),
    )


@router.post("/{beneficiary_id}/activate", response_model=BeneficiaryResponse)
async def activate_beneficiary(
    beneficiary_id: uuid.UUID,
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    return await beneficiary_service.set_beneficiary_active(
        db, actor=vendor, beneficiary_id=beneficiary_id, active=True
    )


@router.post("/{beneficiary_id}/deactivate", response_model=BeneficiaryResponse)
async def deactivate_beneficiary(
    beneficiary_id: uuid.UUID,
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    return await beneficiary_service.set_beneficiary_active(
        db, actor=vendor, beneficiary_id=beneficiary_id, active=False
    )


@router.delete("/{beneficiary_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_beneficiary(
    beneficiary_id: uuid.UUID,
    vendor: AuthUser = Depends(require_vendor),
    db: AsyncSession = Depends(get_async_db),
):
    """Refused with 409 once a payout has used the beneficiary."""
    await beneficiary_service.delete_beneficiary(
        db, actor=vendor, beneficiary_id=beneficiary_id
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
