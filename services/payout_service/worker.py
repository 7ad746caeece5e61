"""ARQ worker for payout reconciliation."""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.config import get_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)
settings = get_settings()


def reconcile_minutes(every: int) -> set[int]:
    """Cron minute set for running every ``every`` minutes.

    The set restarts at minute 0 each hour, so ``every`` is lowered to the
    nearest divisor of 60 to keep the gap between runs even.
    """
    requested = every
    every = max(1, min(every, 60))
    while 60 % every:
        every -= 1
    if every != requested:
        logger.warning(
            "Reconcile interval %s minutes adjusted to %s", requested, every
        )
    return set(range(0, 60, every))


async def startup(ctx: dict):
    configure_logging()
    logger.info("Payout worker started")


async def task_reconcile_pending_payouts(ctx: dict):
    from services.payout_service.tasks import reconcile_pending_payouts

    logger.info("Running: reconcile_pending_payouts")
    report = await reconcile_pending_payouts()
    return {
        "checked": report.checked,
        "resolved": report.resolved,
        "flagged": report.flagged,
        "errors": report.errors,
    }


class WorkerSettings:
    redis_settings = get_redis_settings()

    on_startup = startup

    functions = [
        task_reconcile_pending_payouts,
    ]

    cron_jobs = [
        cron(
            task_reconcile_pending_payouts,
            minute=reconcile_minutes(settings.RECONCILE_CRON_MINUTES),
            run_at_startup=True,
            unique=True,
        ),
    ]
