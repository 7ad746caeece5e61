"""
Model factories and test doubles.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs. The ``make_*`` coroutines go through the
service layer so wallets, ledger entries and balances stay consistent.

Usage:
    vendor = VendorFactory.create(status=VendorStatus.SUSPENDED)
    db_session.add(vendor)
    await db_session.commit()

    vendor, wallet = await make_funded_vendor(db_session, balance="1000.00")
"""

import asyncio
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from jose import jwt
from libs.auth.models import AuthUser
from libs.common.config import get_settings

settings = get_settings()

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_email() -> str:
    return f"vendor-{uuid.uuid4().hex[:8]}@test.com"


def make_vendor_user(vendor_id: uuid.UUID, **overrides) -> AuthUser:
    defaults = {"user_id": str(vendor_id), "role": "vendor", "status": "active"}
    defaults.update(overrides)
    return AuthUser(**defaults)


def make_admin_user(user_id: str = "admin-1", **overrides) -> AuthUser:
    defaults = {"user_id": user_id, "role": "admin", "email": "admin@test.com"}
    defaults.update(overrides)
    return AuthUser(**defaults)


def make_service_user(user_id: str = "system:scheduler", **overrides) -> AuthUser:
    defaults = {"user_id": user_id, "role": "service_role"}
    defaults.update(overrides)
    return AuthUser(**defaults)


def auth_headers(user: AuthUser) -> dict:
    """Bearer header carrying a real HS256 token for ``user``."""
    claims = {"sub": user.user_id, "role": user.role}
    if user.email:
        claims["email"] = user.email
    if user.status:
        claims["status"] = user.status
    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Vendor Service
# ---------------------------------------------------------------------------


class VendorFactory:
    @staticmethod
    def create(**overrides):
        from services.vendor_service.models import Vendor, VendorStatus

        defaults = {
            "id": _uuid(),
            "email": _unique_email(),
            "business_name": "Test Traders",
            "status": VendorStatus.ACTIVE,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Vendor(**defaults)


# ---------------------------------------------------------------------------
# Payout Service
# ---------------------------------------------------------------------------


class BeneficiaryFactory:
    @staticmethod
    def create(vendor_id=None, **overrides):
        from services.payout_service.models import Beneficiary, TransferType

        defaults = {
            "id": _uuid(),
            "vendor_id": vendor_id or _uuid(),
            "name": "Ravi Kumar",
            "phone_number": "9876543210",
            "transfer_type": TransferType.IMPS,
            "account_number": "123456789012",
            "ifsc": "HDFC0001234",
            "bank_name": "HDFC Bank",
            "is_active": True,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Beneficiary(**defaults)


UPI_DETAILS = {
    "name": "Asha Patel",
    "phone_number": "9123456780",
    "transfer_type": "UPI",
    "vpa_address": "asha@okbank",
}

IMPS_DETAILS = {
    "name": "Ravi Kumar",
    "phone_number": "9876543210",
    "transfer_type": "IMPS",
    "account_number": "123456789012",
    "ifsc": "hdfc0001234",
    "bank_name": "HDFC Bank",
}


# ---------------------------------------------------------------------------
# Service-layer builders
# ---------------------------------------------------------------------------


async def make_active_vendor(db, **overrides):
    """Insert an active vendor with an empty wallet; return both."""
    from services.wallet_service.services.ledger_ops import create_wallet

    vendor = VendorFactory.create(**overrides)
    db.add(vendor)
    await db.flush()
    wallet = await create_wallet(db, vendor_id=vendor.id, commit=False)
    await db.commit()
    return vendor, wallet


async def make_funded_vendor(db, balance="1000.00", **overrides):
    """Active vendor whose wallet holds ``balance`` from one top-up credit."""
    from services.wallet_service.services.ledger_ops import credit

    vendor, wallet = await make_active_vendor(db, **overrides)
    if Decimal(str(balance)) > 0:
        await credit(
            db,
            wallet_id=wallet.id,
            amount=balance,
            source_ref=f"seed-{uuid.uuid4().hex[:8]}",
        )
    return vendor, wallet


async def make_beneficiary(db, vendor_id, **overrides):
    beneficiary = BeneficiaryFactory.create(vendor_id=vendor_id, **overrides)
    db.add(beneficiary)
    await db.commit()
    return beneficiary


# ---------------------------------------------------------------------------
# Payment rail double
# ---------------------------------------------------------------------------


class FakePayoutProvider:
    """In-memory payment rail. Configure the next answers, then inspect calls.

    ``submit_error`` / ``status_error`` are raised instead of answering.
    ``statuses`` maps a merchant reference to a TransferStatus; references
    not in the map report ``default_status``.
    """

    def __init__(self):
        from services.payout_service.payninja_client import (
            PROVIDER_PROCESSING,
            ProviderBalance,
            TransferSubmission,
        )

        self.submission = TransferSubmission(
            accepted=True,
            provider_transaction_id="PN-TXN-1",
            status=PROVIDER_PROCESSING,
        )
        self.submit_error: Optional[Exception] = None
        self.status_error: Optional[Exception] = None
        self.default_status = PROVIDER_PROCESSING
        self.statuses: dict = {}
        self.balance = ProviderBalance(balance=Decimal("250000.00"), currency="INR")
        self.submitted: list[dict] = []
        self.queried: list[str] = []

    def set_status(self, reference: str, status: str, utr=None, error=None):
        from services.payout_service.payninja_client import TransferStatus

        self.statuses[reference] = TransferStatus(status=status, utr=utr, error=error)

    async def submit_transfer(self, beneficiary_details, amount, reference, narration):
        self.submitted.append(
            {
                "beneficiary": beneficiary_details,
                "amount": amount,
                "reference": reference,
                "narration": narration,
            }
        )
        if self.submit_error:
            raise self.submit_error
        return self.submission

    async def query_status(self, reference):
        from services.payout_service.payninja_client import TransferStatus

        self.queried.append(reference)
        if self.status_error:
            raise self.status_error
        return self.statuses.get(reference) or TransferStatus(
            status=self.default_status
        )

    async def get_account_balance(self):
        if self.status_error:
            raise self.status_error
        return self.balance


class LaggingPayoutProvider(FakePayoutProvider):
    """Yields to the event loop before every answer, so concurrent calls overlap."""

    def __init__(self, delay: float = 0.05):
        super().__init__()
        self.delay = delay

    async def submit_transfer(self, beneficiary_details, amount, reference, narration):
        await asyncio.sleep(self.delay)
        return await super().submit_transfer(
            beneficiary_details, amount, reference, narration
        )

    async def query_status(self, reference):
        await asyncio.sleep(self.delay)
        return await super().query_status(reference)
