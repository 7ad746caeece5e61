"""Payout Service schemas package.

IMPORTANT: Every schema class must be listed here.
"""

from services.payout_service.schemas.beneficiary import (  # noqa: F401
    BeneficiaryCreate,
    BeneficiaryDetails,
    BeneficiaryListResponse,
    BeneficiaryResponse,
    BeneficiaryUpdate,
)
from services.payout_service.schemas.overview import (  # noqa: F401
    AdminOverviewResponse,
    PayoutStatsResponse,
    PayoutStatusStats,
    WalletTotals,
)
from services.payout_service.schemas.payout import (  # noqa: F401
    PayoutInitiateRequest,
    PayoutInitiateResponse,
    PayoutListResponse,
    PayoutResponse,
    ProviderBalanceResponse,
    ReconcileReportResponse,
)

__all__ = [
    # Beneficiary
    "BeneficiaryCreate",
    "BeneficiaryDetails",
    "BeneficiaryListResponse",
    "BeneficiaryResponse",
    "BeneficiaryUpdate",
    # Overview
    "AdminOverviewResponse",
    "PayoutStatsResponse",
    "PayoutStatusStats",
    "WalletTotals",
    # Payout
    "PayoutInitiateRequest",
    "PayoutInitiateResponse",
    "PayoutListResponse",
    "PayoutResponse",
    "ProviderBalanceResponse",
    "ReconcileReportResponse",
]
