"""Vendor registration and admin vendor management endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.vendor_service.models import VendorStatus
from services.vendor_service.schemas import (
    VendorListResponse,
    VendorRegisterRequest,
    VendorResponse,
    VendorStatsResponse,
    VendorStatusUpdate,
)
from services.vendor_service.services import vendor_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/vendors", tags=["vendors"])
admin_router = APIRouter(prefix="/admin/vendors", tags=["admin-vendors"])


@router.post(
    "/register", response_model=VendorResponse, status_code=status.HTTP_201_CREATED
)
async def register_vendor(
    body: VendorRegisterRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Sign up a vendor. Starts ``pending`` until an admin approves it."""
    return await vendor_ops.register_vendor(
        db, email=body.email, business_name=body.business_name
    )


@admin_router.get("", response_model=VendorListResponse)
async def list_vendors(
    vendor_status: Optional[VendorStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    vendors, total = await vendor_ops.list_vendors(
        db, status=vendor_status, skip=skip, limit=limit
    )
    return VendorListResponse(vendors=vendors, total=total, skip=skip, limit=limit)


@admin_router.get("/stats", response_model=VendorStatsResponse)
async def get_vendor_stats(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return VendorStatsResponse(**await vendor_ops.vendor_stats(db))


@admin_router.post("/{vendor_id}/status", response_model=VendorResponse)
async def update_vendor_status(
    vendor_id: uuid.UUID,
    body: VendorStatusUpdate,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Approve, suspend or re-activate a vendor."""
    return await vendor_ops.update_vendor_status(
        db, actor=admin, vendor_id=vendor_id, action=body.action
    )
