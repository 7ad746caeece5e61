"""Background reconciliation of payouts the provider has not settled yet."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from libs.auth.dependencies import ensure_operator
from libs.auth.models import AuthUser, system_actor
from libs.common.config import get_settings
from libs.common.datetime_utils import seconds_ago, utc_now
from libs.common.errors import ServiceError
from libs.common.locks import payout_locks
from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal
from services.payout_service.models import OPEN_STATUSES, PayoutTransaction
from services.payout_service.payninja_client import (
    PaymentRailProvider,
    get_payout_provider,
)
from services.payout_service.services.payout_engine import (
    load_payout,
    refresh_from_provider,
)
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

logger = get_logger(__name__)


@dataclass
class ReconcileReport:
    checked: int = 0
    resolved: int = 0
    flagged: int = 0
    errors: int = 0
    references: list[str] = field(default_factory=list)


async def find_stuck_payouts(
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
    grace_seconds: int,
    interval_seconds: int,
    limit: int,
) -> list[str]:
    """References of open payouts past the grace period and not checked
    within the last interval, oldest first."""
    now = now or utc_now()
    created_cutoff = seconds_ago(grace_seconds, now)
    checked_cutoff = seconds_ago(interval_seconds, now)

    result = await db.execute(
        select(PayoutTransaction.merchant_reference_id)
        .where(
            PayoutTransaction.status.in_(OPEN_STATUSES),
            PayoutTransaction.needs_manual_review.is_(False),
            PayoutTransaction.created_at <= created_cutoff,
            or_(
                PayoutTransaction.last_checked_at.is_(None),
                PayoutTransaction.last_checked_at <= checked_cutoff,
            ),
        )
        .order_by(PayoutTransaction.created_at.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def reconcile_payout(
    db: AsyncSession,
    reference: str,
    *,
    provider: PaymentRailProvider,
    max_attempts: int,
) -> Optional[PayoutTransaction]:
    """One reconciliation attempt for one payout.

    The attempt is counted before the provider is asked, so a payout whose
    checks keep failing still reaches the bound and gets flagged.
    """
    async with payout_locks.hold(reference):
        payout = await load_payout(db, reference)
        if not payout or not payout.is_open or payout.needs_manual_review:
            return payout

        payout.reconcile_attempts += 1
        payout.last_checked_at = utc_now()
        await db.commit()

        try:
            await refresh_from_provider(db, payout, provider)
        except ServiceError as exc:
            logger.warning(
                "Reconcile attempt %d for payout %s failed: %s",
                payout.reconcile_attempts,
                reference,
                exc.message,
            )

        payout = await load_payout(db, reference)
        if payout.is_open and payout.reconcile_attempts >= max_attempts:
            payout.needs_manual_review = True
            payout.review_reason = (
                f"Still {payout.status.value} after {payout.reconcile_attempts} "
                "reconciliation attempts"
            )
            await db.commit()
            logger.warning(
                "Giving up on payout %s after %d attempts; flagged for manual review",
                reference,
                payout.reconcile_attempts,
            )
        return payout


async def reconcile_stuck_payouts(
    *,
    actor: Optional[AuthUser] = None,
    session_factory=None,
    provider: Optional[PaymentRailProvider] = None,
    now: Optional[datetime] = None,
    grace_seconds: Optional[int] = None,
    interval_seconds: Optional[int] = None,
    max_attempts: Optional[int] = None,
    batch_size: Optional[int] = None,
) -> ReconcileReport:
    """Check every stuck payout once. Never raises for a single payout.

    Runs as ``system_actor()`` unless an operator triggered the pass.
    """
    actor = actor or system_actor()
    ensure_operator(actor)
    settings = get_settings()
    session_factory = session_factory or AsyncSessionLocal
    provider = provider or get_payout_provider()
    max_attempts = max_attempts or settings.RECONCILE_MAX_ATTEMPTS

    async with session_factory() as db:
        references = await find_stuck_payouts(
            db,
            now=now,
            grace_seconds=(
                settings.RECONCILE_GRACE_SECONDS
                if grace_seconds is None
                else grace_seconds
            ),
            interval_seconds=(
                settings.RECONCILE_INTERVAL_SECONDS
                if interval_seconds is None
                else interval_seconds
            ),
            limit=batch_size or settings.RECONCILE_BATCH_SIZE,
        )

    report = ReconcileReport()
    for reference in references:
        report.checked += 1
        report.references.append(reference)
        try:
            async with session_factory() as db:
                payout = await reconcile_payout(
                    db, reference, provider=provider, max_attempts=max_attempts
                )
        except (ServiceError, StaleDataError) as exc:
            report.errors += 1
            logger.warning("Reconcile of payout %s aborted: %s", reference, exc)
            continue

        if payout is None:
            continue
        if not payout.is_open:
            report.resolved += 1
        elif payout.needs_manual_review:
            report.flagged += 1

    if report.checked:
        logger.info(
            "Reconciled payouts for %s: checked=%d resolved=%d flagged=%d errors=%d",
            actor.user_id,
            report.checked,
            report.resolved,
            report.flagged,
            report.errors,
        )
    return report
