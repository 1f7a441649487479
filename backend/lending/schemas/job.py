"""Job Schemas - scheduler listing and manual run results."""

from datetime import datetime

from pydantic import BaseModel


class SweepReportResponse(BaseModel):
    name: str
    examined: int
    applied: int
    failed: int


class JobRunResponse(BaseModel):
    job: str
    reports: list[SweepReportResponse]


class JobInfo(BaseModel):
    name: str
    schedule: str
    next_run: datetime
    last_run: datetime | None
    last_error: str | None
    running: bool
