"""
Celery Application Configuration

Diffs of uploaded files are CPU-bound, so they run on Celery workers
rather than on the request thread.
"""

from celery import Celery
from celery.signals import task_postrun, task_prerun

from thesis_diff.core.config import get_settings
from thesis_diff.core.logging import (
    bind_job_context,
    clear_job_context,
    configure_logging,
    get_logger,
)

configure_logging()
logger = get_logger(__name__)

settings = get_settings()

celery_app = Celery(
    "thesis_diff",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["thesis_diff.workers.tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.celery_task_timeout,
    # Leave the task a minute to store a failed result before the hard kill
    task_soft_time_limit=max(settings.celery_task_timeout - 60, 1),
    # One comparison holds two documents and a quadratic table in memory
    worker_prefetch_multiplier=1,
    result_expires=settings.celery_result_expires,
)


@task_prerun.connect
def _bind_job(task_id=None, kwargs=None, **extra):
    bind_job_context((kwargs or {}).get("job_id") or task_id)


@task_postrun.connect
def _clear_job(**extra):
    clear_job_context()


logger.info(
    "celery_app_configured",
    broker=settings.celery_broker_url,
    result_expires=settings.celery_result_expires
)
