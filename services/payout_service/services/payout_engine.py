"""Payout engine: debit the wallet, hand the transfer to the payment rail, and
finalize or reverse based on what the provider reports.

Lock order is always payout reference first, wallet second. Status changes
on a payout also go through its ``version`` column, so a concurrent writer in
another process fails with ``StaleDataError`` instead of overwriting.
"""

import asyncio
import random
import string
import time
import uuid
from decimal import Decimal
from typing import Optional

from libs.auth.dependencies import ensure_admin, ensure_vendor_access
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.currency import CENT, ZERO, require_positive
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    AlreadyReversed,
    BeneficiaryInactive,
    DuplicateReference,
    IncompleteBeneficiary,
    InvalidRequest,
    ModeMismatch,
    NotFound,
    ProviderRejected,
    ProviderUnreachable,
)
from libs.common.locks import payout_locks
from libs.common.logging import get_logger
from services.payout_service.models import (
    ALLOWED_TRANSITIONS,
    Beneficiary,
    PayoutStatus,
    PayoutTransaction,
)
from services.payout_service.payninja_client import (
    PROVIDER_FAILED,
    PROVIDER_NOT_FOUND,
    PROVIDER_PROCESSING,
    PROVIDER_REVERSED,
    PROVIDER_SUCCESS,
    PaymentRailProvider,
    ProviderBalance,
    ProviderRequestError,
    ProviderTransportError,
    TransferStatus,
)
from services.payout_service.services.beneficiary_service import (
    Destination,
    coerce_transfer_type,
    destination_from_beneficiary,
    supports_transfer_type,
    validate_destination,
)
from services.vendor_service.services.vendor_ops import require_active_vendor
from services.wallet_service.models import SOURCE_PAYOUT, LedgerEntry, LedgerEntryType
from services.wallet_service.services.ledger_ops import (
    get_wallet_by_vendor,
    locked_wallet,
    post_entry,
    post_reversal,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()

DEFAULT_NARRATION = "Vendor payout"
REFERENCE_MAX_LENGTH = 64


def generate_reference(vendor_id: uuid.UUID) -> str:
    """Reference like ``VND1a2b3c4d1718000000000K3J9QZ``.

    ``VND`` + first 8 chars of the vendor id + epoch millis + 6 random chars.
    """
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"VND{str(vendor_id)[:8]}{int(time.time() * 1000)}{suffix}"


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def load_payout(db: AsyncSession, reference: str) -> Optional[PayoutTransaction]:
    result = await db.execute(
        select(PayoutTransaction)
        .where(PayoutTransaction.merchant_reference_id == reference)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_payout(
    db: AsyncSession, *, actor: AuthUser, reference: str
) -> PayoutTransaction:
    payout = await load_payout(db, reference)
    if not payout:
        raise NotFound("Payout not found", merchant_reference_id=reference)
    ensure_vendor_access(actor, payout.vendor_id)
    return payout


async def list_payouts(
    db: AsyncSession,
    *,
    actor: AuthUser,
    vendor_id: Optional[uuid.UUID] = None,
    status: Optional[PayoutStatus] = None,
    needs_review: Optional[bool] = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[PayoutTransaction], int]:
    """Newest-first page of payouts. Vendors only ever see their own."""
    if not actor.is_admin:
        vendor_id = vendor_id or actor.vendor_id()
        ensure_vendor_access(actor, vendor_id)

    filters = []
    if vendor_id:
        filters.append(PayoutTransaction.vendor_id == vendor_id)
    if status:
        filters.append(PayoutTransaction.status == status)
    if needs_review is not None:
        filters.append(PayoutTransaction.needs_manual_review == needs_review)

    total = (
        await db.execute(
            select(func.count()).select_from(PayoutTransaction).where(*filters)
        )
    ).scalar() or 0
    result = await db.execute(
        select(PayoutTransaction)
        .where(*filters)
        .order_by(PayoutTransaction.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def payout_stats(db: AsyncSession) -> dict:
    """Count and total amount per status, plus how many await manual review."""
    result = await db.execute(
        select(
            PayoutTransaction.status,
            func.count(),
            func.coalesce(func.sum(PayoutTransaction.amount), 0),
        ).group_by(PayoutTransaction.status)
    )
    stats: dict = {s.value: {"count": 0, "total_amount": ZERO} for s in PayoutStatus}
    for status, count, total in result.all():
        stats[PayoutStatus(status).value] = {
            "count": count,
            "total_amount": Decimal(str(total)).quantize(CENT),
        }
    stats["needs_review"] = (
        await db.execute(
            select(func.count())
            .select_from(PayoutTransaction)
            .where(PayoutTransaction.needs_manual_review.is_(True))
        )
    ).scalar() or 0
    return stats


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------


def _ensure_transition(payout: PayoutTransaction, new_status: PayoutStatus) -> None:
    if new_status not in ALLOWED_TRANSITIONS[payout.status]:
        raise InvalidRequest(
            f"Payout cannot move from {payout.status.value} to {new_status.value}",
            merchant_reference_id=payout.merchant_reference_id,
        )


def _settle(payout: PayoutTransaction, new_status: PayoutStatus) -> None:
    payout.status = new_status
    if new_status.is_terminal:
        payout.completed_at = utc_now()
        # An open payout is only ever flagged for exhausting its status checks
        payout.needs_manual_review = False
        payout.review_reason = None


async def _close_with_reversal(
    db: AsyncSession,
    payout: PayoutTransaction,
    new_status: PayoutStatus,
    *,
    error: Optional[str] = None,
) -> PayoutTransaction:
    """Move an open payout to ``failed``/``reversed`` and refund its debit,
    both in one commit."""
    _ensure_transition(payout, new_status)

    async with locked_wallet(db, payout.wallet_id) as wallet:
        original = await db.get(LedgerEntry, payout.debit_entry_id)
        try:
            reversal = await post_reversal(
                db,
                wallet,
                original,
                description=f"Refund for payout {payout.merchant_reference_id}",
            )
            payout.reversal_entry_id = reversal.id
        except AlreadyReversed as exc:
            logger.warning(
                "Debit for payout %s was already reversed",
                payout.merchant_reference_id,
            )
            payout.reversal_entry_id = exc.context.get("reversal_entry_id")

        _settle(payout, new_status)
        if error:
            payout.last_provider_error = error
        await db.commit()

    logger.info(
        "Payout %s %s; %s refunded to wallet %s",
        payout.merchant_reference_id,
        new_status.value,
        payout.amount,
        payout.wallet_id,
    )
    return payout


async def _mark_success(
    db: AsyncSession, payout: PayoutTransaction, utr: Optional[str]
) -> PayoutTransaction:
    _ensure_transition(payout, PayoutStatus.SUCCESS)
    _settle(payout, PayoutStatus.SUCCESS)
    payout.utr = utr or payout.utr
    await db.commit()
    logger.info(
        "Payout %s settled (UTR %s)", payout.merchant_reference_id, payout.utr
    )
    return payout


async def _flag_for_review(
    db: AsyncSession, payout: PayoutTransaction, reason: str
) -> None:
    payout.needs_manual_review = True
    payout.review_reason = reason
    await db.commit()
    logger.error(
        "Payout %s flagged for manual review: %s",
        payout.merchant_reference_id,
        reason,
    )


async def _apply_provider_status(
    db: AsyncSession, payout: PayoutTransaction, result: TransferStatus
) -> PayoutTransaction:
    """Fold one provider status report into the payout record."""
    payout.provider_status = result.status
    if result.error:
        payout.last_provider_error = result.error
    if result.provider_transaction_id and not payout.provider_transaction_id:
        payout.provider_transaction_id = result.provider_transaction_id

    if payout.status.is_terminal:
        # Never re-debit or re-refund a closed payout; surface contradictions
        refunded = payout.status in (PayoutStatus.FAILED, PayoutStatus.REVERSED)
        if refunded and result.status == PROVIDER_SUCCESS:
            await _flag_for_review(
                db,
                payout,
                f"Provider reports success (UTR {result.utr}) for a payout "
                f"already {payout.status.value} and refunded",
            )
        elif payout.status == PayoutStatus.SUCCESS and result.status in (
            PROVIDER_FAILED,
            PROVIDER_REVERSED,
        ):
            await _flag_for_review(
                db,
                payout,
                f"Provider reports {result.status} for a payout already settled",
            )
        else:
            await db.commit()
        return payout

    if result.status == PROVIDER_SUCCESS:
        return await _mark_success(db, payout, result.utr)
    if result.status == PROVIDER_FAILED:
        return await _close_with_reversal(
            db,
            payout,
            PayoutStatus.FAILED,
            error=result.error or "Provider reported failure",
        )
    if result.status in (PROVIDER_REVERSED, PROVIDER_NOT_FOUND):
        return await _close_with_reversal(
            db,
            payout,
            PayoutStatus.REVERSED,
            error=result.error or f"Provider reported {result.status}",
        )

    if result.status == PROVIDER_PROCESSING and payout.status == PayoutStatus.PENDING:
        payout.status = PayoutStatus.PROCESSING
    await db.commit()
    return payout


async def refresh_from_provider(
    db: AsyncSession,
    payout: PayoutTransaction,
    provider: PaymentRailProvider,
) -> PayoutTransaction:
    """Query the provider for ``payout`` and apply the answer.

    The caller must hold the payout's reference lock. A provider that cannot
    be reached leaves the payout untouched apart from the recorded error.
    """
    reference = payout.merchant_reference_id
    payout.last_checked_at = utc_now()
    try:
        result = await asyncio.wait_for(
            provider.query_status(reference),
            timeout=settings.PAYOUT_PROVIDER_TIMEOUT_SECONDS,
        )
    except (ProviderTransportError, asyncio.TimeoutError) as exc:
        payout.last_provider_error = str(exc) or "Provider status query timed out"
        await db.commit()
        logger.warning("Status check for payout %s failed: %s", reference, exc)
        raise ProviderUnreachable(
            merchant_reference_id=reference, status=payout.status.value
        )
    except ProviderRequestError as exc:
        payout.last_provider_error = exc.message
        await db.commit()
        logger.warning("Status check for payout %s refused: %s", reference, exc)
        raise ProviderRejected(
            exc.message, merchant_reference_id=reference, status=payout.status.value
        )

    return await _apply_provider_status(db, payout, result)


async def check_status(
    db: AsyncSession,
    *,
    actor: AuthUser,
    reference: str,
    provider: PaymentRailProvider,
) -> PayoutTransaction:
    """Ask the provider for the current state of a payout and apply it.

    A provider-reported failure on an open payout refunds the debit in the
    same commit as the status change.
    """
    if actor.is_operator:
        if not await load_payout(db, reference):
            raise NotFound("Payout not found", merchant_reference_id=reference)
    else:
        await get_payout(db, actor=actor, reference=reference)

    async with payout_locks.hold(reference):
        payout = await load_payout(db, reference)
        return await refresh_from_provider(db, payout, provider)


# ---------------------------------------------------------------------------
# Initiation
# ---------------------------------------------------------------------------


async def _resolve_destination(
    db: AsyncSession,
    *,
    vendor_id: uuid.UUID,
    beneficiary_id: Optional[uuid.UUID],
    beneficiary: Optional[dict],
    transfer_type,
) -> tuple[Destination, Optional[uuid.UUID]]:
    requested_type = coerce_transfer_type(transfer_type) if transfer_type else None

    if beneficiary_id:
        saved = await db.get(Beneficiary, beneficiary_id)
        if not saved or saved.vendor_id != vendor_id:
            raise NotFound("Beneficiary not found", beneficiary_id=beneficiary_id)
        if not saved.is_active:
            raise BeneficiaryInactive(beneficiary_id=beneficiary_id)

        destination = destination_from_beneficiary(saved)
        if requested_type and requested_type != destination.transfer_type:
            if not supports_transfer_type(destination, requested_type):
                raise ModeMismatch(
                    f"Beneficiary cannot receive {requested_type.value} transfers",
                    beneficiary_id=beneficiary_id,
                    transfer_type=requested_type.value,
                )
            destination.transfer_type = requested_type
        return destination, saved.id

    if not beneficiary:
        raise IncompleteBeneficiary(
            "Either a saved beneficiary or inline beneficiary details are required"
        )

    details = dict(beneficiary)
    inline_type = details.get("transfer_type")
    if requested_type and inline_type:
        if coerce_transfer_type(inline_type) != requested_type:
            raise ModeMismatch(
                "Transfer type does not match the beneficiary's transfer type",
                transfer_type=requested_type.value,
            )
    details["transfer_type"] = inline_type or requested_type
    return validate_destination(**details), None


async def _fail_submission(
    db: AsyncSession, payout: PayoutTransaction, error: str
) -> None:
    """Refund a payout whose submission failed, before the error is raised."""
    payout.provider_status = PROVIDER_FAILED
    await _close_with_reversal(db, payout, PayoutStatus.FAILED, error=error)


async def initiate_payout(
    db: AsyncSession,
    *,
    actor: AuthUser,
    vendor_id: uuid.UUID,
    amount,
    provider: PaymentRailProvider,
    beneficiary_id: Optional[uuid.UUID] = None,
    beneficiary: Optional[dict] = None,
    transfer_type=None,
    narration: Optional[str] = None,
    merchant_reference_id: Optional[str] = None,
) -> PayoutTransaction:
    """Debit the wallet and submit one transfer to the payment rail.

    Validation errors and InsufficientFunds leave no trace. Once the debit is
    committed the payout exists; a provider that cannot be reached or refuses
    the transfer gets the payout failed and refunded before ProviderUnreachable
    or ProviderRejected is raised. Acceptance returns the payout in
    ``processing``; settlement arrives via :func:`check_status` or the
    reconciliation worker.
    """
    ensure_vendor_access(actor, vendor_id)
    amount = require_positive(amount)
    destination, saved_beneficiary_id = await _resolve_destination(
        db,
        vendor_id=vendor_id,
        beneficiary_id=beneficiary_id,
        beneficiary=beneficiary,
        transfer_type=transfer_type,
    )

    reference = (merchant_reference_id or "").strip() or generate_reference(vendor_id)
    if len(reference) > REFERENCE_MAX_LENGTH:
        raise InvalidRequest(
            f"Merchant reference id cannot exceed {REFERENCE_MAX_LENGTH} characters"
        )
    narration = (narration or "").strip() or DEFAULT_NARRATION

    await require_active_vendor(db, vendor_id)

    async with payout_locks.hold(reference):
        if await load_payout(db, reference):
            raise DuplicateReference(merchant_reference_id=reference)

        wallet = await get_wallet_by_vendor(db, vendor_id)
        try:
            async with locked_wallet(db, wallet.id) as locked:
                debit = await post_entry(
                    db,
                    locked,
                    entry_type=LedgerEntryType.PAYOUT_DEBIT,
                    amount=-amount,
                    source_type=SOURCE_PAYOUT,
                    source_ref=reference,
                    description=f"Payout {reference} via {destination.transfer_type.value}",
                )
                payout = PayoutTransaction(
                    vendor_id=vendor_id,
                    wallet_id=locked.id,
                    beneficiary_id=saved_beneficiary_id,
                    beneficiary_snapshot=destination.snapshot(),
                    merchant_reference_id=reference,
                    amount=amount,
                    currency=locked.currency,
                    transfer_type=destination.transfer_type,
                    status=PayoutStatus.PENDING,
                    narration=narration,
                    debit_entry_id=debit.id,
                )
                db.add(payout)
                await db.commit()
        except IntegrityError:
            # Same reference committed by another process after our check
            raise DuplicateReference(merchant_reference_id=reference)

        logger.info(
            "Payout %s created: %s %s to %s beneficiary",
            reference,
            amount,
            payout.currency,
            destination.transfer_type.value,
        )

        try:
            submission = await asyncio.wait_for(
                provider.submit_transfer(
                    payout.beneficiary_snapshot, amount, reference, narration
                ),
                timeout=settings.PAYOUT_PROVIDER_TIMEOUT_SECONDS,
            )
        except (ProviderTransportError, asyncio.TimeoutError) as exc:
            error = str(exc) or "Provider call timed out"
            logger.error("Payout %s could not reach provider: %s", reference, error)
            await _fail_submission(db, payout, error)
            raise ProviderUnreachable(
                merchant_reference_id=reference, status=payout.status.value
            )
        except ProviderRequestError as exc:
            logger.error("Payout %s refused by provider: %s", reference, exc.message)
            await _fail_submission(db, payout, exc.message)
            raise ProviderRejected(
                exc.message, merchant_reference_id=reference, status=payout.status.value
            )

        if not submission.accepted:
            error = submission.message or "Provider rejected the transfer"
            logger.error("Payout %s rejected by provider: %s", reference, error)
            await _fail_submission(db, payout, error)
            raise ProviderRejected(
                error, merchant_reference_id=reference, status=payout.status.value
            )

        payout.provider_transaction_id = submission.provider_transaction_id
        payout.provider_status = submission.status
        if submission.status == PROVIDER_SUCCESS and submission.utr:
            return await _mark_success(db, payout, submission.utr)

        _ensure_transition(payout, PayoutStatus.PROCESSING)
        payout.status = PayoutStatus.PROCESSING
        await db.commit()

    logger.info(
        "Payout %s accepted by provider (txn %s)",
        reference,
        payout.provider_transaction_id,
    )
    return payout


async def provider_balance(
    *, actor: AuthUser, provider: PaymentRailProvider
) -> ProviderBalance:
    """Merchant float held at the payment rail, distinct from any wallet."""
    ensure_admin(actor)
    try:
        return await asyncio.wait_for(
            provider.get_account_balance(),
            timeout=settings.PAYOUT_PROVIDER_TIMEOUT_SECONDS,
        )
    except (ProviderTransportError, asyncio.TimeoutError) as exc:
        logger.warning("Provider balance lookup failed: %s", exc)
        raise ProviderUnreachable()
    except ProviderRequestError as exc:
        raise ProviderRejected(exc.message)
