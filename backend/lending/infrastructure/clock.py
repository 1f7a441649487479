"""Clock - the only place the shell reads wall-clock time.

Invariants:
    - now() is timezone-aware UTC
"""

from datetime import datetime, timezone


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)
