"""Background reconciliation tasks for the payout service."""

from services.payout_service.services.reconciliation import (
    ReconcileReport,
    reconcile_stuck_payouts,
)


async def reconcile_pending_payouts() -> ReconcileReport:
    """Resolve pending/processing payouts against the provider."""
    return await reconcile_stuck_payouts()
