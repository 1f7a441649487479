"""Sweep Jobs - binds the reconciliation sweeps to the job scheduler.

Invariants:
    - Each job run opens its own DB session from db_manager
    - Every job promotes overdue reservations before its own sweep
    - Job names are stable: they appear in logs and in POST /api/v1/jobs/{name}/run
"""

from lending.config import Settings
from lending.core.repository_protocols import Clock, NotificationDispatcher
from lending.infrastructure import database
from lending.infrastructure.scheduler import JobScheduler
from lending.services.reconciliation import ReconciliationService, SweepReport

DUE_REMINDERS = "due_reminders"
LATE_REMINDERS = "late_reminders"
PURCHASE_CHECK = "purchase_check"

_SWEEPS = {
    DUE_REMINDERS: ReconciliationService.send_due_reminders,
    LATE_REMINDERS: ReconciliationService.send_late_reminders,
    PURCHASE_CHECK: ReconciliationService.convert_overdue_to_purchase,
}


def make_sweep_job(
    name: str, settings: Settings, clock: Clock, notifier: NotificationDispatcher,
):
    sweep = _SWEEPS[name]
    policy = settings.lending_policy()

    async def run() -> list[SweepReport]:
        if database.db_manager is None:
            raise RuntimeError("Database not initialized")
        async with database.db_manager.session() as db:
            service = ReconciliationService(db, policy, clock, notifier)
            return [await service.promote_overdue(), await sweep(service)]

    return run


def build_scheduler(
    settings: Settings, clock: Clock, notifier: NotificationDispatcher,
) -> JobScheduler:
    """Scheduler with the three lending jobs on their configured cron lines."""
    scheduler = JobScheduler(clock)
    crons = {
        DUE_REMINDERS: settings.cron_due_reminders,
        LATE_REMINDERS: settings.cron_late_reminders,
        PURCHASE_CHECK: settings.cron_purchase_check,
    }
    for name, cron in crons.items():
        scheduler.add_job(name, cron, make_sweep_job(name, settings, clock, notifier))
    return scheduler
