"""Root conftest - shared test configuration."""

import os

# Keep tests off any real database and away from the background scheduler
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")
