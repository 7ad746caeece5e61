"""Beneficiary registry: validated UPI / IMPS / NEFT payout destinations."""

import re
import uuid
from dataclasses import dataclass
from typing import Optional

from libs.auth.dependencies import ensure_vendor_access
from libs.auth.models import AuthUser
from libs.common.errors import (
    BeneficiaryInUse,
    IncompleteBeneficiary,
    ModeMismatch,
    NotFound,
)
from libs.common.logging import get_logger
from services.payout_service.models import Beneficiary, PayoutTransaction, TransferType
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

PHONE_RE = re.compile(r"^\d{10}$")
BANK_FIELDS = ("account_number", "ifsc", "bank_name")
EDITABLE_FIELDS = (
    "name",
    "phone_number",
    "transfer_type",
    "vpa_address",
    "account_number",
    "ifsc",
    "bank_name",
)


@dataclass
class Destination:
    """Normalized beneficiary details, validated for their transfer type."""

    name: str
    phone_number: str
    transfer_type: TransferType
    vpa_address: Optional[str] = None
    account_number: Optional[str] = None
    ifsc: Optional[str] = None
    bank_name: Optional[str] = None

    def snapshot(self) -> dict:
        details = {
            "name": self.name,
            "phone_number": self.phone_number,
            "transfer_type": self.transfer_type.value,
        }
        if self.transfer_type == TransferType.UPI:
            details["vpa_address"] = self.vpa_address
        else:
            details["account_number"] = self.account_number
            details["ifsc"] = self.ifsc
            details["bank_name"] = self.bank_name
        return details


def coerce_transfer_type(value) -> TransferType:
    if isinstance(value, TransferType):
        return value
    if not value:
        raise IncompleteBeneficiary("Transfer type is required", field="transfer_type")
    try:
        return TransferType(str(value).strip().upper())
    except ValueError:
        raise ModeMismatch(
            f"Unsupported transfer type '{value}'", transfer_type=str(value)
        )


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def validate_destination(
    *,
    name,
    phone_number,
    transfer_type,
    vpa_address=None,
    account_number=None,
    ifsc=None,
    bank_name=None,
) -> Destination:
    """Check the destination fields against the declared transfer type.

    Missing required data raises IncompleteBeneficiary; a field that belongs
    to the other kind of destination raises ModeMismatch.
    """
    transfer_type = coerce_transfer_type(transfer_type)

    name = _clean(name)
    phone_number = _clean(phone_number)
    vpa_address = _clean(vpa_address)
    account_number = _clean(account_number)
    ifsc = _clean(ifsc)
    bank_name = _clean(bank_name)

    if not name:
        raise IncompleteBeneficiary("Beneficiary name is required", field="name")
    if not phone_number or not PHONE_RE.match(phone_number):
        raise IncompleteBeneficiary(
            "Phone number must be exactly 10 digits", field="phone_number"
        )

    if transfer_type == TransferType.UPI:
        if not vpa_address:
            raise IncompleteBeneficiary(
                "UPI beneficiaries require a VPA address", field="vpa_address"
            )
        present = [f for f, v in zip(BANK_FIELDS, (account_number, ifsc, bank_name)) if v]
        if present:
            raise ModeMismatch(
                "UPI beneficiaries cannot carry bank account fields",
                fields=",".join(present),
            )
    else:
        missing = [
            f for f, v in zip(BANK_FIELDS, (account_number, ifsc, bank_name)) if not v
        ]
        if missing:
            raise IncompleteBeneficiary(
                f"{transfer_type.value} beneficiaries require account number, "
                "IFSC and bank name",
                fields=",".join(missing),
            )
        if vpa_address:
            raise ModeMismatch(
                f"{transfer_type.value} beneficiaries cannot carry a VPA address",
                field="vpa_address",
            )
        ifsc = ifsc.upper()

    return Destination(
        name=name,
        phone_number=phone_number,
        transfer_type=transfer_type,
        vpa_address=vpa_address,
        account_number=account_number,
        ifsc=ifsc,
        bank_name=bank_name,
    )


def destination_from_beneficiary(beneficiary: Beneficiary) -> Destination:
    return Destination(
        name=beneficiary.name,
        phone_number=beneficiary.phone_number,
        transfer_type=beneficiary.transfer_type,
        vpa_address=beneficiary.vpa_address,
        account_number=beneficiary.account_number,
        ifsc=beneficiary.ifsc,
        bank_name=beneficiary.bank_name,
    )


def supports_transfer_type(destination: Destination, transfer_type: TransferType) -> bool:
    """A bank account can be paid over IMPS or NEFT; a VPA only over UPI."""
    if transfer_type == TransferType.UPI:
        return bool(destination.vpa_address)
    return bool(
        destination.account_number and destination.ifsc and destination.bank_name
    )


def _apply(beneficiary: Beneficiary, destination: Destination) -> None:
    for field in EDITABLE_FIELDS:
        setattr(beneficiary, field, getattr(destination, field))


async def create_beneficiary(
    db: AsyncSession, *, actor: AuthUser, vendor_id: uuid.UUID, **details
) -> Beneficiary:
    ensure_vendor_access(actor, vendor_id)
    destination = validate_destination(**details)

    beneficiary = Beneficiary(vendor_id=vendor_id, is_active=True)
    _apply(beneficiary, destination)
    db.add(beneficiary)
    await db.commit()
    await db.refresh(beneficiary)

    logger.info(
        "Created %s beneficiary %s for vendor %s",
        beneficiary.transfer_type.value,
        beneficiary.id,
        vendor_id,
    )
    return beneficiary


async def get_beneficiary(
    db: AsyncSession, *, actor: AuthUser, beneficiary_id: uuid.UUID
) -> Beneficiary:
    """Fetch a beneficiary owned by the actor (or any, for admins)."""
    beneficiary = await db.get(Beneficiary, beneficiary_id)
    if not beneficiary:
        raise NotFound("Beneficiary not found", beneficiary_id=beneficiary_id)
    ensure_vendor_access(actor, beneficiary.vendor_id)
    return beneficiary


async def update_beneficiary(
    db: AsyncSession,
    *,
    actor: AuthUser,
    beneficiary_id: uuid.UUID,
    changes: dict,
) -> Beneficiary:
    """Partial update; the merged record is revalidated as a whole.

    Switching transfer type clears the other destination's fields unless the
    change set supplies them explicitly.
    """
    beneficiary = await get_beneficiary(db, actor=actor, beneficiary_id=beneficiary_id)

    merged = {field: getattr(beneficiary, field) for field in EDITABLE_FIELDS}
    new_type = changes.get("transfer_type")
    if new_type and coerce_transfer_type(new_type) != beneficiary.transfer_type:
        if coerce_transfer_type(new_type) == TransferType.UPI:
            for field in BANK_FIELDS:
                merged[field] = None
        else:
            merged["vpa_address"] = None
    merged.update({k: v for k, v in changes.items() if k in EDITABLE_FIELDS})

    destination = validate_destination(**merged)
    _apply(beneficiary, destination)
    await db.commit()
    await db.refresh(beneficiary)

    logger.info("Updated beneficiary %s", beneficiary.id)
    return beneficiary


async def set_beneficiary_active(
    db: AsyncSession,
    *,
    actor: AuthUser,
    beneficiary_id: uuid.UUID,
    active: bool,
) -> Beneficiary:
    """Idempotent activate/deactivate toggle."""
    beneficiary = await get_beneficiary(db, actor=actor, beneficiary_id=beneficiary_id)
    if beneficiary.is_active != active:
        beneficiary.is_active = active
        await db.commit()
        await db.refresh(beneficiary)
        logger.info(
            "%s beneficiary %s",
            "Activated" if active else "Deactivated",
            beneficiary.id,
        )
    return beneficiary


async def delete_beneficiary(
    db: AsyncSession, *, actor: AuthUser, beneficiary_id: uuid.UUID
) -> None:
    """Hard delete, refused once any payout has used the beneficiary."""
    beneficiary = await get_beneficiary(db, actor=actor, beneficiary_id=beneficiary_id)

    used = (
        await db.execute(
            select(func.count())
            .select_from(PayoutTransaction)
            .where(PayoutTransaction.beneficiary_id == beneficiary.id)
        )
    ).scalar() or 0
    if used:
        raise BeneficiaryInUse(beneficiary_id=beneficiary.id, payout_count=used)

    await db.delete(beneficiary)
    await db.commit()
    logger.info("Deleted beneficiary %s", beneficiary_id)


async def list_beneficiaries(
    db: AsyncSession,
    *,
    actor: AuthUser,
    vendor_id: uuid.UUID,
    transfer_type: Optional[TransferType] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[Beneficiary], int]:
    ensure_vendor_access(actor, vendor_id)
    limit = min(limit, 100)

    filters = [Beneficiary.vendor_id == vendor_id]
    if transfer_type:
        filters.append(Beneficiary.transfer_type == transfer_type)
    if is_active is not None:
        filters.append(Beneficiary.is_active == is_active)

    total = (
        await db.execute(select(func.count()).select_from(Beneficiary).where(*filters))
    ).scalar() or 0
    result = await db.execute(
        select(Beneficiary)
        .where(*filters)
        .order_by(Beneficiary.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all()), total
