"""Job Routes - inspect the sweep schedule and run a sweep on demand.

Invariants:
    - A manual run shares the scheduler's overlap guard (409 while the job is busy)
    - Only available when admin endpoints are enabled
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from lending.api.dependencies import get_scheduler, require_admin_endpoints
from lending.infrastructure.scheduler import JobScheduler
from lending.schemas.job import JobInfo, JobRunResponse, SweepReportResponse

router = APIRouter(
    prefix="/api/v1/jobs", tags=["jobs"],
    dependencies=[Depends(require_admin_endpoints)],
)


@router.get("", response_model=list[JobInfo])
async def list_jobs(scheduler: JobScheduler = Depends(get_scheduler)):
    return [
        JobInfo(
            name=job.name,
            schedule=job.schedule.expression,
            next_run=job.next_run,
            last_run=job.last_run,
            last_error=job.last_error,
            running=scheduler.is_busy(job.name),
        )
        for job in scheduler.jobs
    ]


@router.post("/{name}/run", response_model=JobRunResponse)
async def run_job(name: str, scheduler: JobScheduler = Depends(get_scheduler)):
    """Run one sweep job now and return its per-sweep reports."""
    reports = await scheduler.run_now(name)
    return JobRunResponse(
        job=name,
        reports=[SweepReportResponse(**asdict(r)) for r in reports],
    )
