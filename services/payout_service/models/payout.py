"""PayoutTransaction model: one debit-and-transfer attempt to a beneficiary."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, enum_values
from services.payout_service.models.enums import PayoutStatus, TransferType
from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column


class PayoutTransaction(Base):
    """Created ``pending`` in the same commit as its ledger debit.

    ``debit_entry_id`` and ``reversal_entry_id`` point at ledger entries owned
    by the wallet service. ``version`` guards status changes across processes.
    """

    __tablename__ = "payout_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    wallet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("wallets.id"), nullable=False, index=True
    )
    beneficiary_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("beneficiaries.id"), nullable=True, index=True
    )
    beneficiary_snapshot: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False
    )
    merchant_reference_id: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)
    transfer_type: Mapped[TransferType] = mapped_column(
        SAEnum(
            TransferType,
            name="transfer_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    status: Mapped[PayoutStatus] = mapped_column(
        SAEnum(
            PayoutStatus,
            name="payout_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=PayoutStatus.PENDING,
        nullable=False,
    )
    provider_transaction_id: Mapped[Optional[str]] = mapped_column(
        String, nullable=True
    )
    utr: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    narration: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    debit_entry_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("ledger_entries.id"), nullable=False
    )
    reversal_entry_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("ledger_entries.id"), nullable=True
    )

    # Provider / reconciliation tracking
    provider_status: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    last_provider_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reconcile_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_checked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    needs_manual_review: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    review_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payout_amount_positive"),
        Index("ix_payout_transactions_status_created", "status", "created_at"),
    )

    @property
    def is_open(self) -> bool:
        return not self.status.is_terminal

    def __repr__(self) -> str:
        return (
            f"<PayoutTransaction {self.merchant_reference_id} {self.amount} "
            f"{self.status.value}>"
        )
