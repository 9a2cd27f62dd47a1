"""
API Routes for the Thesis Diff Service

This module defines all HTTP endpoints for the service.
"""

import uuid
from pathlib import Path

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse

from thesis_diff.core.config import get_settings
from thesis_diff.core.logging import get_logger
from thesis_diff.models.diff import (
    ComparisonResult,
    DiffRequest,
    DiffResult,
    HealthCheck,
    JobStatus,
    LineDiffRequest,
    LineDiffResponse,
    WordDiffRequest,
    WordDiffResponse,
)
from thesis_diff.services.diff_service import DiffService
from thesis_diff.services.line_diff import compute_line_diff
from thesis_diff.workers.celery_app import celery_app
from thesis_diff.workers.tasks import compare_versions_task

logger = get_logger(__name__)
router = APIRouter()
settings = get_settings()
diff_service = DiffService()


@router.post("/diff", response_model=DiffResult)
def diff_versions(request: DiffRequest):
    """
    Compare two versions whose text has already been extracted.

    Returns the capability, line rows and stats, and the PDF fallback view.
    """
    return diff_service.compare(request)


@router.post("/diff/lines", response_model=LineDiffResponse)
def diff_lines(request: LineDiffRequest):
    """Align two raw line sequences; the ceiling never exceeds the configured limit."""
    ceiling = settings.diff_line_limit
    if request.ceiling is not None:
        ceiling = min(request.ceiling, settings.diff_line_limit)
    rows, stats = compute_line_diff(request.previous_lines, request.current_lines, ceiling)
    return LineDiffResponse(rows=rows, stats=stats)


@router.post("/diff/words", response_model=WordDiffResponse)
def diff_words(request: WordDiffRequest):
    """Word-level highlighting for one pair of lines."""
    return WordDiffResponse(segments=diff_service.word_diff(request.left, request.right))


@router.post("/compare", status_code=status.HTTP_202_ACCEPTED)
async def compare_versions(
    previous_file: UploadFile = File(..., description="Previous version (PDF)"),
    current_file: UploadFile = File(..., description="Current version (PDF)"),
    previous_version: int = Form(default=1, ge=1, description="Previous version number"),
    current_version: int = Form(default=2, ge=1, description="Current version number")
):
    """
    Submit a comparison job for two uploaded versions.

    The job ID is returned immediately, and the client can poll for results.
    """
    logger.info(
        "compare_request_received",
        previous_file=previous_file.filename,
        current_file=current_file.filename
    )

    if previous_version >= current_version:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="previous_version must be lower than current_version"
        )

    for file in [previous_file, current_file]:
        if not (file.filename or "").lower().endswith(".pdf"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File {file.filename} is not a PDF"
            )

    contents = []
    for file in [previous_file, current_file]:
        content = await file.read()
        if len(content) > settings.max_file_size_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File {file.filename} exceeds maximum size of {settings.max_file_size_mb}MB"
            )
        contents.append(content)

    try:
        job_id = uuid.uuid4().hex

        temp_dir = Path(settings.temp_dir)
        temp_dir.mkdir(parents=True, exist_ok=True)

        previous_path = temp_dir / f"{job_id}_previous.pdf"
        current_path = temp_dir / f"{job_id}_current.pdf"
        previous_path.write_bytes(contents[0])
        current_path.write_bytes(contents[1])

        logger.info(
            "files_saved",
            job_id=job_id,
            previous=str(previous_path),
            current=str(current_path)
        )

        task = compare_versions_task.apply_async(
            kwargs={
                "job_id": job_id,
                "previous_path": str(previous_path),
                "current_path": str(current_path),
                "previous_version": previous_version,
                "current_version": current_version,
                "previous_locator": previous_file.filename,
                "current_locator": current_file.filename,
            },
            task_id=job_id
        )

        logger.info("task_submitted", job_id=job_id, task_id=task.id)

        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={
                "job_id": job_id,
                "status": "pending",
                "message": "Comparison job submitted successfully",
                "poll_url": f"/api/v1/jobs/{job_id}",
                "results_url": f"/api/v1/results/{job_id}"
            }
        )

    except Exception as e:
        logger.error("compare_request_failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to submit comparison job: {str(e)}"
        )


@router.get("/jobs/{job_id}", response_model=JobStatus)
async def get_job_status(job_id: str):
    """
    Get the status of a comparison job.

    Args:
        job_id: Job identifier

    Returns:
        Job status information
    """
    logger.debug("job_status_requested", job_id=job_id)

    try:
        task_result = celery_app.AsyncResult(job_id)
        info = task_result.info if isinstance(task_result.info, dict) else {}

        if task_result.state == "PENDING":
            status_enum, message, progress = "pending", "Job is pending", 0
        elif task_result.state in ("PROCESSING", "STARTED"):
            status_enum = "processing"
            message = info.get("current_step", "Processing")
            progress = info.get("progress", 50)
        elif task_result.state == "SUCCESS":
            status_enum, message, progress = "completed", "Job completed successfully", 100
        elif task_result.state == "FAILURE":
            status_enum, message, progress = "failed", f"Job failed: {task_result.info}", 0
        elif task_result.state == "REVOKED":
            status_enum, message, progress = "cancelled", "Job was cancelled", 0
        else:
            status_enum, message, progress = "processing", f"Job status: {task_result.state}", 50

        return JobStatus(
            job_id=job_id,
            status=status_enum,
            progress_percentage=progress,
            message=message,
            current_step=info.get("current_step")
        )

    except Exception as e:
        logger.error("job_status_failed", job_id=job_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get job status: {str(e)}"
        )


@router.get("/results/{job_id}", response_model=ComparisonResult)
async def get_comparison_results(job_id: str):
    """
    Get the results of a completed comparison job.

    Raises:
        HTTPException: If job not found, still processing, or failed
    """
    logger.info("results_requested", job_id=job_id)

    try:
        task_result = celery_app.AsyncResult(job_id)

        if task_result.state == "PENDING":
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Job not found or not yet started"
            )

        if task_result.state in ["PROCESSING", "STARTED", "RETRY"]:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Job is still processing. Check job status first."
            )

        if task_result.state == "FAILURE":
            error_msg = str(task_result.info)
            logger.error("job_failed", job_id=job_id, error=error_msg)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Job failed: {error_msg}"
            )

        if task_result.state == "SUCCESS":
            result_data = task_result.result
            logger.info("results_retrieved", job_id=job_id, status=result_data.get("status"))
            return ComparisonResult(**result_data)

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Unexpected job state: {task_result.state}"
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error("results_retrieval_failed", job_id=job_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve results: {str(e)}"
        )


@router.get("/health", response_model=HealthCheck)
async def health_check():
    """
    Health check endpoint.

    Returns:
        Service health status
    """
    broker_connected = False
    try:
        celery_app.connection().ensure_connection(max_retries=1)
        broker_connected = True
    except Exception as e:
        logger.warning("broker_health_check_failed", error=str(e))

    worker_count = 0
    if broker_connected:
        try:
            stats = celery_app.control.inspect(timeout=1.0).stats()
            worker_count = len(stats) if stats else 0
        except Exception as e:
            logger.warning("worker_health_check_failed", error=str(e))

    return HealthCheck(
        status="healthy" if broker_connected else "degraded",
        version=settings.api_version,
        broker_connected=broker_connected,
        celery_workers=worker_count,
        text_extraction_enabled=settings.text_extraction_enabled
    )


@router.delete("/jobs/{job_id}")
async def cancel_job(job_id: str):
    """
    Cancel a running job.

    Args:
        job_id: Job identifier

    Returns:
        Cancellation confirmation
    """
    logger.info("job_cancellation_requested", job_id=job_id)

    try:
        celery_app.control.revoke(job_id, terminate=True)

        return {
            "job_id": job_id,
            "status": "cancelled",
            "message": "Job cancellation requested"
        }

    except Exception as e:
        logger.error("job_cancellation_failed", job_id=job_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to cancel job: {str(e)}"
        )
