"""
Diff Comparison Service

This service compares two submitted versions of a thesis and produces:
- A capability classification (can a text diff be produced, and if not why)
- A line-by-line diff with context/addition/removal rows
- Summary statistics, including a truncation flag for large documents
- A side-by-side PDF fallback descriptor with coarse change markers

No failure mode raises: missing or unusable text degrades to a capability value.
"""

from typing import Any, Dict, List, Optional

from thesis_diff.core.config import get_settings
from thesis_diff.core.logging import get_logger
from thesis_diff.models.diff import (
    Capability,
    ChangeMarker,
    DiffRequest,
    DiffResult,
    DiffStats,
    PdfView,
    Segment,
)
from thesis_diff.services.capability import capability_message, compute_capability
from thesis_diff.services.line_diff import compute_line_diff, normalize_diff_lines
from thesis_diff.services.pdf_view import build_change_markers, build_pdf_view
from thesis_diff.services.word_diff import compute_word_diff

logger = get_logger(__name__)


class DiffService:
    """
    Service for comparing document versions and generating structured diffs.

    Stateless apart from configuration; a single instance can serve
    concurrent requests.

    Attributes:
        settings: Application settings
    """

    def __init__(self):
        """Initialize the diff service with configuration."""
        self.settings = get_settings()

        logger.info(
            "diff_service_initialized",
            diff_line_limit=self.settings.diff_line_limit,
            pdf_view_with_ready_diff=self.settings.pdf_view_with_ready_diff
        )

    def compare(
        self,
        request: DiffRequest,
        include_pdf_view: Optional[bool] = None
    ) -> DiffResult:
        """
        Compare the two versions of a request.

        Args:
            request: Previous and current versions, plus optional change markers
            include_pdf_view: Attach the PDF view to a ready diff (defaults to
                ``pdf_view_with_ready_diff``); ignored when no text diff is possible

        Returns:
            DiffResult for the pair
        """
        previous, current = request.previous, request.current
        capability = compute_capability(previous.to_extraction(), current.to_extraction())

        logger.info(
            "diff_started",
            previous_version=previous.version_number,
            current_version=current.version_number,
            capability=capability.value
        )

        if capability != Capability.READY:
            result = DiffResult(
                capability=capability,
                message=capability_message(capability),
                rows=[],
                stats=DiffStats(),
                pdf_view=self._pdf_view(request),
            )
            logger.info(
                "diff_unavailable",
                capability=capability.value,
                markers=len(result.pdf_view.changes)
            )
            return result

        previous_lines = normalize_diff_lines(previous.text)
        current_lines = normalize_diff_lines(current.text)
        rows, stats = compute_line_diff(
            previous_lines,
            current_lines,
            self.settings.diff_line_limit
        )

        if include_pdf_view is None:
            include_pdf_view = self.settings.pdf_view_with_ready_diff

        result = DiffResult(
            capability=capability,
            message=None,
            rows=rows,
            stats=stats,
            pdf_view=self._pdf_view(request) if include_pdf_view else None,
        )

        logger.info(
            "diff_computed",
            previous_version=previous.version_number,
            current_version=current.version_number,
            rows=len(rows),
            additions=stats.additions,
            removals=stats.removals,
            unchanged=stats.unchanged,
            truncated=stats.truncated
        )

        return result

    def word_diff(self, left: str, right: str) -> List[Segment]:
        """Word-level highlighting for one pair of lines."""
        return compute_word_diff(left, right)

    def _pdf_view(self, request: DiffRequest) -> PdfView:
        """
        Build the PDF view for a request.

        Markers supplied with the request win; otherwise they are derived from
        whatever text the versions carry.
        """
        changes: List[ChangeMarker]
        if request.changes is not None:
            changes = request.changes
        elif request.previous.text or request.current.text:
            changes = build_change_markers(request.previous.text, request.current.text)
        else:
            changes = []

        return build_pdf_view(
            request.previous.locator,
            request.current.locator,
            changes
        )

    def generate_diff_summary(self, result: DiffResult) -> Dict[str, Any]:
        """
        Generate a summary of a diff result.

        The similarity percentage is ``2 * unchanged / (left lines + right lines)``.

        Args:
            result: Computed diff

        Returns:
            Summary dictionary with statistics
        """
        stats = result.stats
        left_lines = stats.unchanged + stats.removals
        right_lines = stats.unchanged + stats.additions
        total = left_lines + right_lines

        summary = {
            "capability": result.capability.value,
            "total_rows": len(result.rows),
            "additions": stats.additions,
            "removals": stats.removals,
            "unchanged": stats.unchanged,
            "truncated": stats.truncated,
            "similarity_percentage": 200.0 * stats.unchanged / total if total else 0.0,
        }

        logger.info("diff_summary_generated", **summary)

        return summary
