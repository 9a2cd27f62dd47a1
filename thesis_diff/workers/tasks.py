"""
Celery Tasks for Version Comparison

This module defines the background task that extracts and diffs two uploaded
versions of a thesis.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from celery import Task

from thesis_diff.core.config import get_settings
from thesis_diff.core.logging import get_logger
from thesis_diff.models.diff import (
    ComparisonResult,
    ComparisonStatus,
    DiffRequest,
    DocumentVersion,
)
from thesis_diff.services.diff_service import DiffService
from thesis_diff.services.pdf_view import structural_change_markers
from thesis_diff.services.text_extractor import TextExtractionError, TextExtractor
from thesis_diff.workers.celery_app import celery_app

logger = get_logger(__name__)
settings = get_settings()


class ComparisonTask(Task):
    """Base task class with shared setup."""

    _text_extractor = None
    _diff_service = None

    @property
    def text_extractor(self) -> TextExtractor:
        """Lazy-load text extractor."""
        if self._text_extractor is None:
            self._text_extractor = TextExtractor()
        return self._text_extractor

    @property
    def diff_service(self) -> DiffService:
        """Lazy-load diff service."""
        if self._diff_service is None:
            self._diff_service = DiffService()
        return self._diff_service


def _progress(task: Task, job_id: str, step: str, progress: int) -> None:
    task.update_state(
        state="PROCESSING",
        meta={
            "job_id": job_id,
            "status": "processing",
            "current_step": step,
            "progress": progress
        }
    )


@celery_app.task(
    bind=True,
    base=ComparisonTask,
    name="compare_versions",
    max_retries=settings.celery_max_retries,
    default_retry_delay=settings.celery_retry_delay
)
def compare_versions_task(
    self,
    job_id: str,
    previous_path: str,
    current_path: str,
    previous_version: int = 1,
    current_version: int = 2,
    previous_locator: Optional[str] = None,
    current_locator: Optional[str] = None
) -> Dict[str, Any]:
    """
    Compare two uploaded versions of a thesis.

    Steps:
    1. Extract text from both files
    2. Derive structural change markers for the PDF view
    3. Run the diff engine
    4. Return the result as a serializable dictionary

    Args:
        job_id: Unique job identifier
        previous_path: Path to the previous file
        current_path: Path to the current file
        previous_version: Version number of the previous file
        current_version: Version number of the current file
        previous_locator: Storage locator used for the previous PDF URL
        current_locator: Storage locator used for the current PDF URL

    Returns:
        Dictionary with comparison results
    """
    start_time = datetime.now(timezone.utc)
    previous_file = Path(previous_path)
    current_file = Path(current_path)

    logger.info(
        "comparison_task_started",
        job_id=job_id,
        previous=previous_path,
        current=current_path
    )

    _progress(self, job_id, "Extracting text from previous version", 10)

    try:
        previous_extraction = self.text_extractor.extract(previous_file)

        _progress(self, job_id, "Extracting text from current version", 30)

        current_extraction = self.text_extractor.extract(current_file)

        _progress(self, job_id, "Comparing document structure", 50)

        changes = None
        try:
            structure = self.text_extractor.compare_structure(previous_file, current_file)
            changes = structural_change_markers(structure)
        except TextExtractionError as e:
            # Text heuristics take over when the structure cannot be read
            logger.warning("structure_comparison_skipped", job_id=job_id, error=str(e))

        _progress(self, job_id, "Computing diff", 70)

        request = DiffRequest(
            previous=DocumentVersion(
                version_number=previous_version,
                locator=previous_locator or previous_file.name,
                **previous_extraction.model_dump()
            ),
            current=DocumentVersion(
                version_number=current_version,
                locator=current_locator or current_file.name,
                **current_extraction.model_dump()
            ),
            changes=changes or None,
        )
        diff = self.diff_service.compare(request)
        summary = self.diff_service.generate_diff_summary(diff)

        end_time = datetime.now(timezone.utc)
        processing_time = (end_time - start_time).total_seconds()

        result = ComparisonResult(
            job_id=job_id,
            status=ComparisonStatus.COMPLETED,
            created_at=start_time,
            completed_at=end_time,
            processing_time_seconds=processing_time,
            previous_file=previous_file.name,
            current_file=current_file.name,
            diff=diff,
            similarity_percentage=summary["similarity_percentage"],
        )

        logger.info(
            "comparison_task_completed",
            job_id=job_id,
            processing_time=processing_time,
            capability=diff.capability.value,
            rows=len(diff.rows)
        )

        self.text_extractor.cleanup_temp_files([previous_file, current_file])

        return result.model_dump(mode="json")

    except Exception as e:
        logger.error(
            "comparison_task_failed",
            job_id=job_id,
            error=str(e),
            exc_info=True
        )

        if self.request.retries < self.max_retries:
            logger.warning(
                "comparison_task_retrying",
                job_id=job_id,
                retry=self.request.retries + 1,
                max_retries=self.max_retries
            )
            raise self.retry(exc=e)

        self.text_extractor.cleanup_temp_files([previous_file, current_file])

        end_time = datetime.now(timezone.utc)
        error_result = ComparisonResult(
            job_id=job_id,
            status=ComparisonStatus.FAILED,
            created_at=start_time,
            completed_at=end_time,
            processing_time_seconds=(end_time - start_time).total_seconds(),
            previous_file=previous_file.name,
            current_file=current_file.name,
            error=str(e),
            error_details={"exc_type": type(e).__name__}
        )

        return error_result.model_dump(mode="json")
