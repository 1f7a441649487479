"""Job Scheduler - cron-timed jobs drained by a single async worker.

Invariants:
    - Timer -> queue -> worker: the timer only enqueues, the worker only runs
    - A job that is already queued or running is never enqueued again (skipped + logged)
    - A failing job is logged with its name; the worker keeps going
    - Schedule evaluation is pure: CronSchedule.next_after() never reads the clock

Design Decisions:
    - Own 5-field cron parser (minute hour day-of-month month day-of-week, UTC):
      the three lending jobs need nothing beyond *, lists, ranges and steps
    - run_pending(now) is synchronous so tests drive the timer without sleeping
    - sleep is injected for the same reason
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from lending.core.errors import ConcurrencyError, ErrorContext, ResourceNotFoundError
from lending.core.repository_protocols import Clock

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]

# (low, high) per field: minute, hour, day-of-month, month, day-of-week (0 and 7 = Sunday)
_FIELD_BOUNDS = ((0, 59), (0, 23), (1, 31), (1, 12), (0, 7))
_FIELD_NAMES = ("minute", "hour", "day-of-month", "month", "day-of-week")
_MAX_LOOKAHEAD = timedelta(days=366 * 5)


def _parse_field(text: str, low: int, high: int, name: str) -> frozenset[int]:
    values: set[int] = set()
    for part in text.split(","):
        step = 1
        if "/" in part:
            part, step_text = part.split("/", 1)
            if not step_text.isdigit() or int(step_text) == 0:
                raise ValueError(f"Invalid step in cron {name} field: {text!r}")
            step = int(step_text)
        if part == "*":
            start, end = low, high
        elif "-" in part:
            a, b = part.split("-", 1)
            if not (a.isdigit() and b.isdigit()):
                raise ValueError(f"Invalid range in cron {name} field: {text!r}")
            start, end = int(a), int(b)
        elif part.isdigit():
            start = int(part)
            end = high if step > 1 else start
        else:
            raise ValueError(f"Invalid cron {name} field: {text!r}")
        if start < low or end > high or start > end:
            raise ValueError(f"Cron {name} field out of range: {text!r}")
        if name == "day-of-week":
            # 7 is an alias for Sunday
            values.update(v % 7 for v in range(start, end + 1, step))
        else:
            values.update(range(start, end + 1, step))
    return frozenset(values)


@dataclass(frozen=True)
class CronSchedule:
    expression: str
    minutes: frozenset[int]
    hours: frozenset[int]
    days: frozenset[int]
    months: frozenset[int]
    weekdays: frozenset[int]
    any_day: bool
    any_weekday: bool

    @classmethod
    def parse(cls, expression: str) -> "CronSchedule":
        fields = expression.split()
        if len(fields) != 5:
            raise ValueError(
                f"Cron expression needs 5 fields, got {len(fields)}: {expression!r}",
            )
        parsed = [
            _parse_field(text, low, high, name)
            for text, (low, high), name in zip(fields, _FIELD_BOUNDS, _FIELD_NAMES)
        ]
        return cls(
            expression, *parsed,
            any_day=fields[2].startswith("*"), any_weekday=fields[4].startswith("*"),
        )

    def _day_matches(self, dt: datetime) -> bool:
        weekday = (dt.weekday() + 1) % 7
        day_ok = dt.day in self.days
        weekday_ok = weekday in self.weekdays
        # Classic cron: when both day fields are restricted, either may match
        if not self.any_day and not self.any_weekday:
            return day_ok or weekday_ok
        return day_ok and weekday_ok

    def matches(self, dt: datetime) -> bool:
        return (
            dt.minute in self.minutes
            and dt.hour in self.hours
            and dt.month in self.months
            and self._day_matches(dt)
        )

    def next_after(self, dt: datetime) -> datetime:
        """First matching minute strictly after dt (same tzinfo as dt)."""
        candidate = dt.replace(second=0, microsecond=0) + timedelta(minutes=1)
        limit = candidate + _MAX_LOOKAHEAD
        while candidate < limit:
            if candidate.month not in self.months:
                year = candidate.year + candidate.month // 12
                month = candidate.month % 12 + 1
                candidate = candidate.replace(
                    year=year, month=month, day=1, hour=0, minute=0,
                )
                continue
            if not self._day_matches(candidate):
                candidate = candidate.replace(hour=0, minute=0) + timedelta(days=1)
                continue
            if candidate.hour not in self.hours:
                candidate = candidate.replace(minute=0) + timedelta(hours=1)
                continue
            if candidate.minute not in self.minutes:
                candidate += timedelta(minutes=1)
                continue
            return candidate
        raise ValueError(f"Cron expression never fires: {self.expression!r}")


@dataclass
class ScheduledJob:
    name: str
    schedule: CronSchedule
    func: JobFunc
    next_run: datetime
    last_run: datetime | None = None
    last_error: str | None = None
    runs: int = field(default=0)


class JobScheduler:
    """Runs registered jobs on their cron schedules, one at a time."""

    def __init__(
        self,
        clock: Clock,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        tick_seconds: float = 30.0,
    ):
        self.clock = clock
        self._sleep = sleep
        self.tick_seconds = tick_seconds
        self._jobs: dict[str, ScheduledJob] = {}
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._pending: set[str] = set()
        self._timer_task: asyncio.Task | None = None
        self._worker_task: asyncio.Task | None = None
        self._running = False

    @property
    def jobs(self) -> list[ScheduledJob]:
        return list(self._jobs.values())

    @property
    def is_running(self) -> bool:
        return self._running

    def is_busy(self, name: str) -> bool:
        return name in self._pending

    def add_job(
        self, name: str, schedule: CronSchedule | str, func: JobFunc,
    ) -> ScheduledJob:
        if name in self._jobs:
            raise ValueError(f"Job {name!r} already registered")
        if isinstance(schedule, str):
            schedule = CronSchedule.parse(schedule)
        job = ScheduledJob(
            name=name, schedule=schedule, func=func,
            next_run=schedule.next_after(self.clock.now()),
        )
        self._jobs[name] = job
        logger.info(
            f"Job {name} scheduled ({schedule.expression}), next run "
            f"{job.next_run.isoformat()}",
            extra={"job_name": name},
        )
        return job

    def get_job(self, name: str) -> ScheduledJob:
        job = self._jobs.get(name)
        if job is None:
            raise ResourceNotFoundError("Job", name)
        return job

    def _enqueue(self, name: str) -> bool:
        if name in self._pending:
            logger.warning(
                f"Job {name} is already queued or running, skipping",
                extra={"job_name": name},
            )
            return False
        self._pending.add(name)
        self._queue.put_nowait(name)
        return True

    def run_pending(self, now: datetime | None = None) -> list[str]:
        """Enqueue every job whose next_run has passed. Returns the names enqueued."""
        now = now or self.clock.now()
        enqueued = []
        for job in self._jobs.values():
            if job.next_run > now:
                continue
            job.next_run = job.schedule.next_after(now)
            if self._enqueue(job.name):
                enqueued.append(job.name)
        return enqueued

    def trigger(self, name: str) -> bool:
        """Enqueue a job now, outside its schedule."""
        self.get_job(name)
        return self._enqueue(name)

    async def _execute(self, job: ScheduledJob) -> Any:
        started = self.clock.now()
        job.last_run = started
        job.runs += 1
        logger.info(f"Job {job.name} started", extra={"job_name": job.name})
        try:
            result = await job.func()
        except Exception as e:
            job.last_error = str(e)
            logger.error(
                f"Job {job.name} failed: {e}",
                extra={"job_name": job.name}, exc_info=True,
            )
            raise
        job.last_error = None
        logger.info(f"Job {job.name} finished", extra={"job_name": job.name})
        return result

    async def run_now(self, name: str) -> Any:
        """Run a job in the caller's task and return its result.

        Shares the overlap guard with the queue: a job already queued or
        running raises ConcurrencyError instead of starting a second copy.
        """
        job = self.get_job(name)
        if name in self._pending:
            raise ConcurrencyError(
                f"Job {name} is already queued or running",
                ErrorContext(debug_info={"job_name": name}),
            )
        self._pending.add(name)
        try:
            return await self._execute(job)
        finally:
            self._pending.discard(name)

    async def drain(self) -> int:
        """Run everything currently queued. Returns how many jobs ran."""
        ran = 0
        while not self._queue.empty():
            await self._run_next()
            ran += 1
        return ran

    async def _run_next(self) -> None:
        name = await self._queue.get()
        try:
            await self._execute(self._jobs[name])
        except Exception:
            # already logged by _execute; the worker survives job failures
            pass
        finally:
            self._pending.discard(name)
            self._queue.task_done()

    async def _worker_loop(self) -> None:
        while True:
            await self._run_next()

    async def _timer_loop(self) -> None:
        while True:
            self.run_pending(self.clock.now())
            await self._sleep(self.tick_seconds)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._worker_task = asyncio.create_task(self._worker_loop())
        self._timer_task = asyncio.create_task(self._timer_loop())
        logger.info(f"Job scheduler started with {len(self._jobs)} jobs")

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        for task in (self._timer_task, self._worker_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._timer_task = None
        self._worker_task = None
        logger.info("Job scheduler stopped")
