"""Vendor model: the identity that owns a wallet and its payouts."""

import enum
import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base, enum_values
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class VendorStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class VendorAction(str, enum.Enum):
    APPROVE = "approve"
    SUSPEND = "suspend"
    ACTIVATE = "activate"


class Vendor(Base):
    """A seller account. Only ``active`` vendors may hold or move funds."""

    __tablename__ = "vendors"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    business_name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[VendorStatus] = mapped_column(
        SAEnum(
            VendorStatus,
            name="vendor_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=VendorStatus.PENDING,
        nullable=False,
    )
    status_changed_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    status_changed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Vendor {self.id} {self.email} {self.status.value}>"
