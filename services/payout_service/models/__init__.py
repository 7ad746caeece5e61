"""Payout Service models package.

Re-exports all models and enums so that:
  - ``from services.payout_service.models import PayoutTransaction`` works
  - Alembic env.py sees every table on import

IMPORTANT: Every model class AND enum must be listed here.
"""

from services.payout_service.models.beneficiary import Beneficiary  # noqa: F401
from services.payout_service.models.enums import (  # noqa: F401
    ALLOWED_TRANSITIONS,
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    PayoutStatus,
    TransferType,
)
from services.payout_service.models.payout import PayoutTransaction  # noqa: F401

__all__ = [
    # Enums
    "ALLOWED_TRANSITIONS",
    "OPEN_STATUSES",
    "TERMINAL_STATUSES",
    "PayoutStatus",
    "TransferType",
    # Models
    "Beneficiary",
    "PayoutTransaction",
]
