"""Vendor registration and admin status management."""

import uuid
from typing import Optional

from libs.auth.dependencies import ensure_admin
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.errors import InvalidRequest, NotFound, Unauthorized
from libs.common.logging import get_logger
from services.vendor_service.models import Vendor, VendorAction, VendorStatus
from services.wallet_service.services.ledger_ops import create_wallet
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# action -> (allowed current statuses, resulting status)
_TRANSITIONS = {
    VendorAction.APPROVE: ({VendorStatus.PENDING}, VendorStatus.ACTIVE),
    VendorAction.SUSPEND: (
        {VendorStatus.PENDING, VendorStatus.ACTIVE},
        VendorStatus.SUSPENDED,
    ),
    VendorAction.ACTIVATE: ({VendorStatus.SUSPENDED}, VendorStatus.ACTIVE),
}


async def register_vendor(
    db: AsyncSession,
    *,
    email: str,
    business_name: str,
    vendor_id: Optional[uuid.UUID] = None,
) -> Vendor:
    """Create a ``pending`` vendor with its empty wallet in one transaction."""
    existing = await db.execute(select(Vendor).where(Vendor.email == email))
    if existing.scalar_one_or_none():
        raise InvalidRequest("A vendor with this email already exists", email=email)

    vendor = Vendor(
        id=vendor_id or uuid.uuid4(),
        email=email,
        business_name=business_name,
        status=VendorStatus.PENDING,
    )
    db.add(vendor)
    await db.flush()
    await create_wallet(db, vendor_id=vendor.id, commit=False)
    await db.commit()
    await db.refresh(vendor)

    logger.info("Registered vendor %s (%s)", vendor.id, email)
    return vendor


async def get_vendor(db: AsyncSession, vendor_id: uuid.UUID) -> Vendor:
    vendor = await db.get(Vendor, vendor_id)
    if not vendor:
        raise NotFound("Vendor not found", vendor_id=vendor_id)
    return vendor


async def require_active_vendor(db: AsyncSession, vendor_id: uuid.UUID) -> Vendor:
    """Only active vendors may hold or move funds."""
    vendor = await get_vendor(db, vendor_id)
    if vendor.status != VendorStatus.ACTIVE:
        raise Unauthorized(
            f"Vendor account is {vendor.status.value}; only active vendors can move funds",
            vendor_id=vendor_id,
        )
    return vendor


async def update_vendor_status(
    db: AsyncSession,
    *,
    actor: AuthUser,
    vendor_id: uuid.UUID,
    action: VendorAction,
) -> Vendor:
    """Apply an admin approve/suspend/activate action."""
    ensure_admin(actor)
    vendor = await get_vendor(db, vendor_id)

    allowed_from, new_status = _TRANSITIONS[action]
    if vendor.status not in allowed_from:
        raise InvalidRequest(
            f"Cannot {action.value} a vendor that is {vendor.status.value}",
            vendor_id=vendor_id,
        )

    old_status = vendor.status
    vendor.status = new_status
    vendor.status_changed_by = actor.user_id
    vendor.status_changed_at = utc_now()
    await db.commit()
    await db.refresh(vendor)

    logger.info(
        "Admin %s changed vendor %s status %s→%s",
        actor.user_id,
        vendor_id,
        old_status.value,
        new_status.value,
    )
    return vendor


async def list_vendors(
    db: AsyncSession,
    *,
    status: Optional[VendorStatus] = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[Vendor], int]:
    query = select(Vendor)
    count_query = select(func.count()).select_from(Vendor)
    if status:
        query = query.where(Vendor.status == status)
        count_query = count_query.where(Vendor.status == status)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(
        query.order_by(Vendor.created_at.desc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def vendor_stats(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(
        select(Vendor.status, func.count()).group_by(Vendor.status)
    )
    counts = {status.value: 0 for status in VendorStatus}
    for status, count in result.all():
        counts[VendorStatus(status).value] = count
    counts["total"] = sum(counts.values())
    return counts
