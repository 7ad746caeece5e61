"""Top-up flow: vendor funding requests resolved by an admin into ledger credits."""

import random
import string
import uuid
from decimal import Decimal
from typing import Optional

from libs.auth.dependencies import ensure_admin, ensure_vendor_access
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.currency import CENT, ZERO, require_positive
from libs.common.datetime_utils import utc_now
from libs.common.errors import AlreadyResolved, InvalidAmount, InvalidRequest, NotFound
from libs.common.logging import get_logger
from services.vendor_service.services.vendor_ops import require_active_vendor
from services.wallet_service.models import (
    SOURCE_TOPUP,
    LedgerEntryType,
    TopupDecision,
    TopupRequest,
    TopupStatus,
)
from services.wallet_service.services.ledger_ops import (
    get_wallet_by_vendor,
    locked_wallet,
    post_entry,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()


def _generate_topup_reference() -> str:
    """Generate a topup reference like TOP-A1B2C3D4."""
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=8))
    return f"TOP-{suffix}"


async def submit_topup(
    db: AsyncSession,
    *,
    actor: AuthUser,
    vendor_id: uuid.UUID,
    amount,
) -> TopupRequest:
    """Create a ``pending`` funding request.

    Always creates a new request; duplicate submissions are the caller's
    concern. Raises InvalidAmount unless ``0 < amount <= TOPUP_MAX_AMOUNT``.
    """
    ensure_vendor_access(actor, vendor_id)
    amount = require_positive(amount)
    if amount > settings.TOPUP_MAX_AMOUNT:
        raise InvalidAmount(
            f"Top-up amount cannot exceed {settings.TOPUP_MAX_AMOUNT}",
            max_amount=settings.TOPUP_MAX_AMOUNT,
        )

    await require_active_vendor(db, vendor_id)
    wallet = await get_wallet_by_vendor(db, vendor_id)

    topup = TopupRequest(
        reference=_generate_topup_reference(),
        vendor_id=vendor_id,
        wallet_id=wallet.id,
        amount=amount,
        status=TopupStatus.PENDING,
    )
    db.add(topup)
    await db.commit()
    await db.refresh(topup)

    logger.info(
        "Submitted topup %s: %s %s for vendor %s",
        topup.reference,
        amount,
        wallet.currency,
        vendor_id,
    )
    return topup


async def resolve_topup(
    db: AsyncSession,
    *,
    actor: AuthUser,
    topup_id: uuid.UUID,
    decision: TopupDecision,
    notes: Optional[str] = None,
) -> TopupRequest:
    """Approve or reject a pending top-up exactly once.

    Approval posts the ``topup_credit`` entry in the same transaction as the
    status flip. Rejection requires a non-empty reason and touches no balance.
    Re-processing a resolved request raises AlreadyResolved.
    """
    ensure_admin(actor)
    notes = notes.strip() if notes else None
    if decision == TopupDecision.REJECT and not notes:
        raise InvalidRequest("A rejection reason is required", topup_id=topup_id)

    topup = await get_topup(db, topup_id)

    async with locked_wallet(db, topup.wallet_id) as wallet:
        # Re-read under the wallet lock so two admins cannot both resolve it
        result = await db.execute(
            select(TopupRequest)
            .where(TopupRequest.id == topup_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        topup = result.scalar_one()
        if topup.status != TopupStatus.PENDING:
            raise AlreadyResolved(
                f"Top-up {topup.reference} is already {topup.status.value}",
                topup_id=topup_id,
                status=topup.status.value,
            )

        if decision == TopupDecision.APPROVE:
            await require_active_vendor(db, topup.vendor_id)
            entry = await post_entry(
                db,
                wallet,
                entry_type=LedgerEntryType.TOPUP_CREDIT,
                amount=topup.amount,
                source_type=SOURCE_TOPUP,
                source_ref=str(topup.id),
                description=f"Top-up {topup.reference} approved",
            )
            topup.status = TopupStatus.APPROVED
            topup.ledger_entry_id = entry.id
            topup.admin_notes = notes
        else:
            topup.status = TopupStatus.REJECTED
            topup.rejection_reason = notes
            topup.admin_notes = notes

        topup.admin_id = actor.user_id
        topup.processed_at = utc_now()
        await db.commit()

    await db.refresh(topup)
    logger.info(
        "Admin %s %s topup %s (%s)",
        actor.user_id,
        topup.status.value,
        topup.reference,
        topup.amount,
    )
    return topup


async def get_topup(db: AsyncSession, topup_id: uuid.UUID) -> TopupRequest:
    topup = await db.get(TopupRequest, topup_id)
    if not topup:
        raise NotFound("Top-up request not found", topup_id=topup_id)
    return topup


async def list_topups(
    db: AsyncSession,
    *,
    status: Optional[TopupStatus] = None,
    vendor_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[TopupRequest], int]:
    """Newest-first page of top-up requests."""
    query = select(TopupRequest)
    count_query = select(func.count()).select_from(TopupRequest)
    if status:
        query = query.where(TopupRequest.status == status)
        count_query = count_query.where(TopupRequest.status == status)
    if vendor_id:
        query = query.where(TopupRequest.vendor_id == vendor_id)
        count_query = count_query.where(TopupRequest.vendor_id == vendor_id)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(
        query.order_by(TopupRequest.created_at.desc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def topup_stats(db: AsyncSession) -> dict[str, dict]:
    """Count and total amount per status."""
    result = await db.execute(
        select(
            TopupRequest.status,
            func.count(),
            func.coalesce(func.sum(TopupRequest.amount), 0),
        ).group_by(TopupRequest.status)
    )
    stats = {s.value: {"count": 0, "total_amount": ZERO} for s in TopupStatus}
    for status, count, total in result.all():
        stats[TopupStatus(status).value] = {
            "count": count,
            "total_amount": Decimal(str(total)).quantize(CENT),
        }
    return stats
