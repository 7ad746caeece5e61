"""Wallet Service models package.

Re-exports all models and enums so that:
  - ``from services.wallet_service.models import Wallet`` works
  - Alembic env.py sees every table on import

IMPORTANT: Every model class AND enum must be listed here.
"""

from services.wallet_service.models.enums import (  # noqa: F401
    SOURCE_LEDGER_ENTRY,
    SOURCE_PAYOUT,
    SOURCE_TOPUP,
    LedgerEntryType,
    TopupDecision,
    TopupStatus,
)
from services.wallet_service.models.ledger_entry import LedgerEntry  # noqa: F401
from services.wallet_service.models.topup import TopupRequest  # noqa: F401
from services.wallet_service.models.wallet import Wallet  # noqa: F401

__all__ = [
    # Enums
    "LedgerEntryType",
    "TopupDecision",
    "TopupStatus",
    "SOURCE_LEDGER_ENTRY",
    "SOURCE_PAYOUT",
    "SOURCE_TOPUP",
    # Models
    "Wallet",
    "LedgerEntry",
    "TopupRequest",
]
