"""Core ledger operations: atomic credit/debit/reverse with per-wallet locking.

Every balance change appends one ``LedgerEntry`` and updates the cached
``Wallet.balance`` in the same transaction. Writes on a wallet are
serialized twice over: an in-process keyed ``asyncio.Lock`` and a
``SELECT ... FOR UPDATE`` on the wallet row for other processes.
"""

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncIterator, Optional

from libs.common.config import get_settings
from libs.common.currency import CENT, ZERO, require_positive
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    AlreadyReversed,
    InsufficientFunds,
    InvalidRequest,
    NotFound,
)
from libs.common.locks import wallet_locks
from libs.common.logging import get_logger
from services.wallet_service.models import (
    SOURCE_TOPUP,
    LedgerEntry,
    LedgerEntryType,
    Wallet,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()


# ---------------------------------------------------------------------------
# Wallet creation / lookup
# ---------------------------------------------------------------------------


async def create_wallet(
    db: AsyncSession,
    *,
    vendor_id: uuid.UUID,
    currency: Optional[str] = None,
    commit: bool = True,
) -> Wallet:
    """Create the wallet for a vendor.

    Idempotent: returns the existing wallet if the vendor already has one.
    """
    result = await db.execute(select(Wallet).where(Wallet.vendor_id == vendor_id))
    existing = result.scalar_one_or_none()
    if existing:
        return existing

    wallet = Wallet(
        vendor_id=vendor_id,
        balance=ZERO,
        currency=currency or settings.WALLET_CURRENCY,
        lifetime_credited=ZERO,
        lifetime_debited=ZERO,
    )
    db.add(wallet)
    await db.flush()
    if commit:
        await db.commit()

    logger.info("Created wallet %s for vendor %s", wallet.id, vendor_id)
    return wallet


async def get_wallet_by_vendor(db: AsyncSession, vendor_id: uuid.UUID) -> Wallet:
    """Get wallet by owning vendor. Raises NotFound."""
    result = await db.execute(select(Wallet).where(Wallet.vendor_id == vendor_id))
    wallet = result.scalar_one_or_none()
    if not wallet:
        raise NotFound("Wallet not found", vendor_id=vendor_id)
    return wallet


# ---------------------------------------------------------------------------
# Locking primitives
# ---------------------------------------------------------------------------


@asynccontextmanager
async def locked_wallet(db: AsyncSession, wallet_id: uuid.UUID) -> AsyncIterator[Wallet]:
    """Hold the write lock on a wallet and yield a freshly read row.

    The caller posts entries and commits inside the block. Any exception
    rolls the session back so the row lock is released with no partial state.
    """
    async with wallet_locks.hold(wallet_id):
        try:
            result = await db.execute(
                select(Wallet)
                .where(Wallet.id == wallet_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            wallet = result.scalar_one_or_none()
            if not wallet:
                raise NotFound("Wallet not found", wallet_id=wallet_id)
            yield wallet
        except BaseException:
            await db.rollback()
            raise


async def post_entry(
    db: AsyncSession,
    wallet: Wallet,
    *,
    entry_type: LedgerEntryType,
    amount: Decimal,
    source_type: str,
    source_ref: str,
    reversal_of_entry_id: Optional[uuid.UUID] = None,
    description: Optional[str] = None,
) -> LedgerEntry:
    """Append a signed entry to a wallet locked by :func:`locked_wallet`.

    Flushes but does not commit. Raises InsufficientFunds if the entry would
    take the balance below zero.
    """
    balance_before = wallet.balance
    balance_after = balance_before + amount
    if balance_after < ZERO:
        raise InsufficientFunds(
            f"Insufficient wallet balance: available {balance_before}, "
            f"requested {-amount}",
            wallet_id=wallet.id,
            balance=balance_before,
            requested=-amount,
        )

    entry = LedgerEntry(
        wallet_id=wallet.id,
        entry_type=entry_type,
        amount=amount,
        balance_after=balance_after,
        source_type=source_type,
        source_ref=source_ref,
        reversal_of_entry_id=reversal_of_entry_id,
        description=description,
    )
    db.add(entry)

    wallet.balance = balance_after
    if amount > ZERO:
        wallet.lifetime_credited += amount
    else:
        wallet.lifetime_debited += -amount
    wallet.updated_at = utc_now()
    await db.flush()

    logger.info(
        "%s %s on wallet %s (%s:%s), balance %s→%s",
        entry_type.value,
        amount,
        wallet.id,
        source_type,
        source_ref,
        balance_before,
        balance_after,
    )
    return entry


async def find_reversal(
    db: AsyncSession, original_entry_id: uuid.UUID
) -> Optional[LedgerEntry]:
    result = await db.execute(
        select(LedgerEntry).where(LedgerEntry.reversal_of_entry_id == original_entry_id)
    )
    return result.scalar_one_or_none()


async def post_reversal(
    db: AsyncSession,
    wallet: Wallet,
    original: LedgerEntry,
    *,
    description: Optional[str] = None,
) -> LedgerEntry:
    """Credit back a debit on a wallet locked by :func:`locked_wallet`."""
    if original.entry_type != LedgerEntryType.PAYOUT_DEBIT:
        raise InvalidRequest(
            "Only payout debits can be reversed", entry_id=original.id
        )
    if original.wallet_id != wallet.id:
        raise InvalidRequest("Entry belongs to another wallet", entry_id=original.id)

    existing = await find_reversal(db, original.id)
    if existing:
        raise AlreadyReversed(
            entry_id=original.id, reversal_entry_id=existing.id
        )

    return await post_entry(
        db,
        wallet,
        entry_type=LedgerEntryType.PAYOUT_REVERSAL,
        amount=-original.amount,
        source_type=original.source_type,
        source_ref=original.source_ref,
        reversal_of_entry_id=original.id,
        description=description or f"Reversal of {original.id}",
    )


# ---------------------------------------------------------------------------
# Public contract
# ---------------------------------------------------------------------------


async def credit(
    db: AsyncSession,
    *,
    wallet_id: uuid.UUID,
    amount,
    source_ref: str,
    source_type: str = SOURCE_TOPUP,
    entry_type: LedgerEntryType = LedgerEntryType.TOPUP_CREDIT,
    description: Optional[str] = None,
) -> LedgerEntry:
    """Append a positive entry and increment the balance atomically.

    Raises InvalidAmount if ``amount <= 0``.
    """
    amount = require_positive(amount)

    async with locked_wallet(db, wallet_id) as wallet:
        entry = await post_entry(
            db,
            wallet,
            entry_type=entry_type,
            amount=amount,
            source_type=source_type,
            source_ref=source_ref,
            description=description,
        )
        await db.commit()
    return entry


async def debit(
    db: AsyncSession,
    *,
    wallet_id: uuid.UUID,
    amount,
    source_ref: str,
    source_type: str,
    description: Optional[str] = None,
) -> LedgerEntry:
    """Check ``balance >= amount`` and decrement in one locked transaction.

    Raises InvalidAmount for non-positive amounts and InsufficientFunds (with
    no mutation) when the balance is too low.
    """
    amount = require_positive(amount)

    async with locked_wallet(db, wallet_id) as wallet:
        entry = await post_entry(
            db,
            wallet,
            entry_type=LedgerEntryType.PAYOUT_DEBIT,
            amount=-amount,
            source_type=source_type,
            source_ref=source_ref,
            description=description,
        )
        await db.commit()
    return entry


async def reverse(
    db: AsyncSession,
    *,
    original_entry_id: uuid.UUID,
    description: Optional[str] = None,
) -> LedgerEntry:
    """Credit back a prior payout debit, tagged ``payout_reversal``.

    Raises AlreadyReversed if a reversal for that entry already exists, so
    repeated calls never move money twice.
    """
    original = await db.get(LedgerEntry, original_entry_id)
    if not original:
        raise NotFound("Ledger entry not found", entry_id=original_entry_id)

    try:
        async with locked_wallet(db, original.wallet_id) as wallet:
            entry = await post_reversal(db, wallet, original, description=description)
            await db.commit()
    except IntegrityError:
        # Unique reversal_of_entry_id lost a race with another process
        existing = await find_reversal(db, original_entry_id)
        raise AlreadyReversed(
            entry_id=original_entry_id,
            reversal_entry_id=existing.id if existing else None,
        )
    return entry


async def balance(db: AsyncSession, wallet_id: uuid.UUID) -> Decimal:
    """Point-in-time balance read. Not serialized with writes."""
    result = await db.execute(select(Wallet.balance).where(Wallet.id == wallet_id))
    value = result.scalar_one_or_none()
    if value is None:
        raise NotFound("Wallet not found", wallet_id=wallet_id)
    return value


# ---------------------------------------------------------------------------
# History / audit (read-only)
# ---------------------------------------------------------------------------


async def list_entries(
    db: AsyncSession,
    wallet_id: uuid.UUID,
    *,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[LedgerEntry], int]:
    """Newest-first page of a wallet's ledger and the total entry count."""
    total = (
        await db.execute(
            select(func.count())
            .select_from(LedgerEntry)
            .where(LedgerEntry.wallet_id == wallet_id)
        )
    ).scalar() or 0
    result = await db.execute(
        select(LedgerEntry)
        .where(LedgerEntry.wallet_id == wallet_id)
        .order_by(LedgerEntry.created_at.desc(), LedgerEntry.id)
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all()), total


@dataclass
class WalletAudit:
    wallet_id: uuid.UUID
    cached_balance: Decimal
    ledger_balance: Decimal
    entry_count: int

    @property
    def consistent(self) -> bool:
        return self.cached_balance == self.ledger_balance


async def audit_wallet(db: AsyncSession, wallet_id: uuid.UUID) -> WalletAudit:
    """Compare the cached balance with the sum of all ledger entries."""
    cached = await balance(db, wallet_id)
    row = (
        await db.execute(
            select(
                func.coalesce(func.sum(LedgerEntry.amount), 0),
                func.count(LedgerEntry.id),
            ).where(LedgerEntry.wallet_id == wallet_id)
        )
    ).one()
    ledger_balance = Decimal(str(row[0])).quantize(CENT)

    audit = WalletAudit(
        wallet_id=wallet_id,
        cached_balance=cached,
        ledger_balance=ledger_balance,
        entry_count=row[1],
    )
    if not audit.consistent:
        logger.error(
            "Wallet %s balance drift: cached=%s ledger=%s",
            wallet_id,
            cached,
            ledger_balance,
        )
    return audit


async def wallet_totals(db: AsyncSession) -> dict:
    """Wallet count and the sum of cached balances across all vendors."""
    count, total = (
        await db.execute(
            select(func.count(Wallet.id), func.coalesce(func.sum(Wallet.balance), 0))
        )
    ).one()
    return {"count": count, "total_balance": Decimal(str(total)).quantize(CENT)}
