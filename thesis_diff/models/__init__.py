"""
Data models for the Thesis Diff Service.
"""

from thesis_diff.models.diff import (
    Capability,
    ChangeMarker,
    ChangeType,
    ComparisonResult,
    ComparisonStatus,
    DiffRequest,
    DiffResult,
    DiffRow,
    DiffRowType,
    DiffStats,
    DocumentVersion,
    ExtractionResult,
    JobStatus,
    LineDiff,
    PdfView,
    Segment,
    SegmentType,
)

__all__ = [
    "Capability",
    "ChangeMarker",
    "ChangeType",
    "ComparisonResult",
    "ComparisonStatus",
    "DiffRequest",
    "DiffResult",
    "DiffRow",
    "DiffRowType",
    "DiffStats",
    "DocumentVersion",
    "ExtractionResult",
    "JobStatus",
    "LineDiff",
    "PdfView",
    "Segment",
    "SegmentType",
]
