"""LedgerEntry model: immutable, append-only record of one balance change."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, enum_values
from services.wallet_service.models.enums import LedgerEntryType
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class LedgerEntry(Base):
    """Source of truth for wallet balances. Rows are never updated or deleted;
    corrections are new offsetting entries.

    ``amount`` is signed: credits and reversals positive, debits negative.
    """

    __tablename__ = "ledger_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    wallet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("wallets.id"), nullable=False, index=True
    )
    entry_type: Mapped[LedgerEntryType] = mapped_column(
        SAEnum(
            LedgerEntryType,
            name="ledger_entry_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    source_type: Mapped[str] = mapped_column(String, nullable=False)
    source_ref: Mapped[str] = mapped_column(String, index=True, nullable=False)
    reversal_of_entry_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("ledger_entries.id"), unique=True, nullable=True
    )
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint("amount <> 0", name="ck_ledger_entry_amount_non_zero"),
        CheckConstraint("balance_after >= 0", name="ck_ledger_entry_balance_after"),
        Index("ix_ledger_entries_wallet_created", "wallet_id", "created_at"),
    )

    @property
    def is_credit(self) -> bool:
        return self.amount > 0

    def __repr__(self) -> str:
        return f"<LedgerEntry {self.id} {self.entry_type.value} {self.amount}>"
