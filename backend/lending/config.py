"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) - single instance per process
    - Lending numbers reach the services only through lending_policy()

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for every setting: works out-of-the-box with docker-compose
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lending.core.policy import LendingPolicy


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://lending:lending@db:5432/lending"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Lending rules
    reservation_fee: Decimal = Field(Decimal("3.00"), ge=0)
    late_fee_per_day: Decimal = Field(Decimal("0.20"), ge=0)
    standard_borrow_days: int = Field(7, ge=1)
    max_active_reservations: int = Field(3, ge=1)
    due_soon_days: int = Field(2, ge=0)
    late_reminder_days: int = Field(7, ge=0)
    purchase_conversion_charges_wallet: bool = False

    # Scheduler (minute hour day-of-month month day-of-week, UTC)
    scheduler_enabled: bool = True
    cron_due_reminders: str = "0 8 * * *"
    cron_late_reminders: str = "0 9 * * *"
    cron_purchase_check: str = "0 1 * * *"

    # Notifications
    email_from: str = "Royal Library <library@royallibrary.be>"

    # API
    cors_origins: list[str] = ["http://localhost:5173"]
    admin_endpoints_enabled: bool = True

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def lending_policy(self) -> LendingPolicy:
        return LendingPolicy(
            reservation_fee=self.reservation_fee,
            late_fee_per_day=self.late_fee_per_day,
            standard_borrow_days=self.standard_borrow_days,
            max_active_reservations=self.max_active_reservations,
            due_soon_days=self.due_soon_days,
            late_reminder_days=self.late_reminder_days,
            purchase_conversion_charges_wallet=self.purchase_conversion_charges_wallet,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
