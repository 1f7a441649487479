"""Route Dependencies - build services per request from the shared session.

Invariants:
    - Services get their policy, clock and notifier here, never from globals
    - Tests override get_clock / get_notifier through app.dependency_overrides
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lending.config import get_settings
from lending.core.repository_protocols import Clock, NotificationDispatcher
from lending.infrastructure.clock import SystemClock
from lending.infrastructure.database import get_db
from lending.infrastructure.notifications import LogNotificationDispatcher
from lending.infrastructure.scheduler import JobScheduler
from lending.services.reservation_service import ReservationService
from lending.services.wallet_service import WalletService


def get_clock() -> Clock:
    return SystemClock()


def get_notifier() -> NotificationDispatcher:
    return LogNotificationDispatcher(get_settings().email_from)


def get_reservation_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> ReservationService:
    return ReservationService(db, get_settings().lending_policy(), clock, notifier)


def get_wallet_service(db: AsyncSession = Depends(get_db)) -> WalletService:
    return WalletService(db)


def get_scheduler(request: Request) -> JobScheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status.HTTP_503_SERVICE_UNAVAILABLE, detail="Scheduler not initialized",
        )
    return scheduler


def require_admin_endpoints() -> None:
    """Admin routes 404 unless enabled in settings."""
    if not get_settings().admin_endpoints_enabled:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Not Found")
