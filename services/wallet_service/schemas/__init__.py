"""Wallet Service schemas package.

Re-exports all schemas so that routers can import from
``services.wallet_service.schemas`` directly.

IMPORTANT: Every schema class must be listed here.
"""

from services.wallet_service.schemas.ledger import (  # noqa: F401
    LedgerEntryListResponse,
    LedgerEntryResponse,
)
from services.wallet_service.schemas.topup import (  # noqa: F401
    TopupListResponse,
    TopupResolveRequest,
    TopupResponse,
    TopupStatsResponse,
    TopupStatusStats,
    TopupSubmitRequest,
)
from services.wallet_service.schemas.wallet import (  # noqa: F401
    BalanceResponse,
    WalletAuditResponse,
    WalletResponse,
)

__all__ = [
    # Wallet
    "BalanceResponse",
    "WalletAuditResponse",
    "WalletResponse",
    # Ledger
    "LedgerEntryListResponse",
    "LedgerEntryResponse",
    # Topup
    "TopupListResponse",
    "TopupResolveRequest",
    "TopupResponse",
    "TopupStatsResponse",
    "TopupStatusStats",
    "TopupSubmitRequest",
]
