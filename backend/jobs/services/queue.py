from __future__ import annotations

import logging
from typing import Callable, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count

from jobs.models import BackgroundJob

logger = logging.getLogger(__name__)

JobHandler = Callable[[dict], dict]

_HANDLERS: dict[str, JobHandler] = {}


class UnknownJobTypeError(Exception):
    pass


def register_handler(job_type: str):
    """Decorator that binds a function to a BackgroundJob.job_type."""

    def decorator(func: JobHandler) -> JobHandler:
        _HANDLERS[job_type] = func
        return func

    return decorator


def get_handler(job_type: str) -> JobHandler:
    try:
        return _HANDLERS[job_type]
    except KeyError:
        raise UnknownJobTypeError(f"No handler registered for job type '{job_type}'.") from None


def create_background_job(job_type: str, job_data: dict) -> BackgroundJob:
    job = BackgroundJob.objects.create(job_type=job_type, job_data=job_data)
    logger.info("Queued %s job %s", job_type, job.id)

    if getattr(settings, "JOBS_RUN_INLINE", False):
        transaction.on_commit(lambda: process_pending_jobs(limit=settings.JOBS_BATCH_SIZE))
    return job


def _claim_next_job() -> Optional[BackgroundJob]:
    with transaction.atomic():
        job = (
            BackgroundJob.objects.select_for_update(skip_locked=True)
            .filter(status=BackgroundJob.PENDING)
            .order_by("created_at")
            .first()
        )
        if job is None:
            return None
        job.mark_processing()
    return job


def run_job(job: BackgroundJob) -> BackgroundJob:
    try:
        handler = get_handler(job.job_type)
        outcome = handler(job.job_data or {}) or {}
    except Exception as exc:
        logger.exception("Job %s (%s) failed", job.id, job.job_type)
        job.mark_failed(str(exc))
        return job

    job.mark_completed({"success": True, **outcome})
    logger.info("Job %s (%s) completed", job.id, job.job_type)
    return job


def process_next_job() -> Optional[BackgroundJob]:
    """Run the oldest pending job. Returns None when the queue is empty."""

    job = _claim_next_job()
    if job is None:
        return None
    return run_job(job)


def process_pending_jobs(limit: int = 10) -> dict:
    summary = {"processed": 0, "completed": 0, "failed": 0, "jobs": []}
    for _ in range(limit):
        job = process_next_job()
        if job is None:
            break
        summary["processed"] += 1
        if job.status == BackgroundJob.COMPLETED:
            summary["completed"] += 1
        else:
            summary["failed"] += 1
        summary["jobs"].append({"id": str(job.id), "job_type": job.job_type, "status": job.status})
    return summary


def retry_job(job: BackgroundJob) -> BackgroundJob:
    if job.status != BackgroundJob.FAILED:
        raise ValueError("Only failed jobs can be retried.")
    job.status = BackgroundJob.PENDING
    job.result = None
    job.started_at = None
    job.completed_at = None
    job.save(update_fields=["status", "result", "started_at", "completed_at"])
    logger.info("Job %s requeued", job.id)
    return job


def get_pending_job_count() -> int:
    return BackgroundJob.objects.filter(status=BackgroundJob.PENDING).count()


def get_job_stats() -> dict:
    stats = {choice: 0 for choice, _ in BackgroundJob.STATUSES}
    for row in BackgroundJob.objects.values("status").annotate(total=Count("id")):
        stats[row["status"]] = row["total"]
    stats["total"] = sum(stats.values())
    return stats
