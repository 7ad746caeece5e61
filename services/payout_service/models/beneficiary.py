"""Beneficiary model: a vendor's saved payout destination."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, enum_values
from services.payout_service.models.enums import TransferType
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Beneficiary(Base):
    """UPI beneficiaries carry ``vpa_address``; IMPS/NEFT carry bank fields."""

    __tablename__ = "beneficiaries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(10), nullable=False)
    transfer_type: Mapped[TransferType] = mapped_column(
        SAEnum(
            TransferType,
            name="transfer_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    vpa_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    account_number: Mapped[Optional[str]] = mapped_column(String(34), nullable=True)
    ifsc: Mapped[Optional[str]] = mapped_column(String(11), nullable=True)
    bank_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        Index("ix_beneficiaries_vendor_active", "vendor_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Beneficiary {self.id} {self.name} {self.transfer_type.value}>"
