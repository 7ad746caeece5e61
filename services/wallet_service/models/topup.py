"""TopupRequest model: vendor funding request awaiting admin approval."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, enum_values
from services.wallet_service.models.enums import TopupStatus
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class TopupRequest(Base):
    """Moves exactly once from ``pending`` to ``approved`` or ``rejected``."""

    __tablename__ = "topup_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    reference: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    vendor_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    wallet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("wallets.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[TopupStatus] = mapped_column(
        SAEnum(
            TopupStatus,
            name="topup_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=TopupStatus.PENDING,
        nullable=False,
    )
    admin_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ledger_entry_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("ledger_entries.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_topup_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<TopupRequest {self.reference} {self.amount} {self.status.value}>"
