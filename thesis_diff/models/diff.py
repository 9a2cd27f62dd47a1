"""
Data models for thesis version comparison.

These models define the structure of requests, responses, and intermediate data
used by the diff engine and the service around it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Capability(str, Enum):
    """Whether a text diff can be produced for a document pair, and why not."""

    READY = "ready"
    PARSER_MISSING = "parser_missing"
    BINARY_DETECTED = "binary_detected"
    NO_CONTENT = "no_content"


class DiffRowType(str, Enum):
    """Classification of one aligned line."""

    CONTEXT = "context"
    ADDITION = "addition"
    REMOVAL = "removal"


class SegmentType(str, Enum):
    """Classification of one word-level token."""

    EQUAL = "equal"
    ADD = "add"
    REMOVE = "remove"


class ChangeType(str, Enum):
    """Coarse change kind shown beside the PDF view."""

    ADDITION = "addition"
    REMOVAL = "removal"
    EDIT = "edit"


class ComparisonStatus(str, Enum):
    """Status of a background comparison job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ExtractionResult(BaseModel):
    """
    Output of the text-extraction collaborator for one document.

    ``text`` is None when extraction failed.
    """

    text: Optional[str] = Field(None, description="Extracted plain text")
    extraction_available: bool = Field(
        default=True,
        description="Whether the extraction subsystem is installed and enabled"
    )
    looks_binary: bool = Field(
        default=False,
        description="Whether the binary has no usable text layer"
    )


class DocumentVersion(BaseModel):
    """
    Immutable snapshot of one submitted version of a thesis.

    A version is never mutated after creation; it is superseded by a new one.
    """

    model_config = ConfigDict(frozen=True)

    version_number: int = Field(..., ge=1, description="Monotonic version number per thesis")
    text: Optional[str] = Field(None, description="Extracted plain text, None if extraction failed")
    extraction_available: bool = Field(default=True, description="Extraction subsystem available")
    looks_binary: bool = Field(default=False, description="Binary has no usable text layer")
    locator: Optional[str] = Field(None, description="Storage locator of the original file")
    created_at: datetime = Field(default_factory=_utcnow, description="Creation time")

    def to_extraction(self) -> ExtractionResult:
        return ExtractionResult(
            text=self.text,
            extraction_available=self.extraction_available,
            looks_binary=self.looks_binary,
        )


class ChangeMarker(BaseModel):
    """A coarse change note rendered next to the two PDFs."""

    id: str = Field(..., description="Stable marker identifier")
    label: str = Field(..., description="Short human label")
    type: ChangeType = Field(..., description="Kind of change")
    preview: str = Field(default="", description="Excerpt of the changed text")


class DiffRequest(BaseModel):
    """
    A pair of versions to compare.

    Ephemeral: constructed per comparison request and never persisted.
    """

    previous: DocumentVersion = Field(..., description="Older version")
    current: DocumentVersion = Field(..., description="Newer version")
    changes: Optional[List[ChangeMarker]] = Field(
        None,
        description="Change markers derived by the PDF collaborator, if any"
    )

    @model_validator(mode="after")
    def validate_version_order(self) -> "DiffRequest":
        """Previous must be strictly older than current."""
        if self.previous.version_number >= self.current.version_number:
            raise ValueError(
                "previous.version_number must be lower than current.version_number"
            )
        return self


class DiffRow(BaseModel):
    """One aligned unit of line-level comparison."""

    type: DiffRowType = Field(..., description="Row classification")
    left_line: Optional[int] = Field(None, ge=1, description="1-based line in previous version")
    right_line: Optional[int] = Field(None, ge=1, description="1-based line in current version")
    left_text: str = Field(default="", description="Previous line content")
    right_text: str = Field(default="", description="Current line content")

    @model_validator(mode="after")
    def validate_sides(self) -> "DiffRow":
        """Row type must agree with which sides are present."""
        if self.type == DiffRowType.ADDITION and (self.left_line is not None or self.left_text):
            raise ValueError("addition rows have no left side")
        if self.type == DiffRowType.REMOVAL and (self.right_line is not None or self.right_text):
            raise ValueError("removal rows have no right side")
        if self.type == DiffRowType.CONTEXT and (
            self.left_line is None or self.right_line is None or self.left_text != self.right_text
        ):
            raise ValueError("context rows need both sides and equal text")
        return self


class DiffStats(BaseModel):
    """Counts over the emitted rows."""

    additions: int = Field(default=0, ge=0, description="Addition rows")
    removals: int = Field(default=0, ge=0, description="Removal rows")
    unchanged: int = Field(default=0, ge=0, description="Context rows")
    truncated: bool = Field(default=False, description="Inputs were cut to the line ceiling")


class Segment(BaseModel):
    """One word-level token of an intra-line diff."""

    text: str = Field(..., description="Token text including its whitespace")
    type: SegmentType = Field(..., description="Token classification")


class PdfView(BaseModel):
    """Side-by-side PDF fallback descriptor."""

    previous_pdf_url: Optional[str] = Field(None, description="URL of the previous PDF")
    current_pdf_url: Optional[str] = Field(None, description="URL of the current PDF")
    changes: List[ChangeMarker] = Field(default_factory=list, description="Coarse change markers")


class DiffResult(BaseModel):
    """
    Result of comparing two versions.

    ``rows`` is only meaningful when ``capability`` is ready; otherwise
    ``pdf_view`` is always present so the caller has a visual fallback.
    """

    capability: Capability = Field(..., description="Whether a text diff was produced")
    message: Optional[str] = Field(None, description="Guidance when no text diff is possible")
    rows: List[DiffRow] = Field(default_factory=list, description="Aligned line rows")
    stats: DiffStats = Field(default_factory=DiffStats, description="Row statistics")
    pdf_view: Optional[PdfView] = Field(None, description="PDF fallback descriptor")


class LineDiff(NamedTuple):
    """Rows and stats of a line-level diff."""

    rows: List[DiffRow]
    stats: DiffStats


class LineDiffRequest(BaseModel):
    """Body of the raw line diff endpoint."""

    previous_lines: List[str] = Field(default_factory=list, description="Previous lines")
    current_lines: List[str] = Field(default_factory=list, description="Current lines")
    ceiling: Optional[int] = Field(
        None,
        description="Combined line ceiling, defaults to the configured limit"
    )


class LineDiffResponse(BaseModel):
    """Response of the raw line diff endpoint."""

    rows: List[DiffRow] = Field(default_factory=list)
    stats: DiffStats = Field(default_factory=DiffStats)


class WordDiffRequest(BaseModel):
    """Body of the word diff endpoint."""

    left: str = Field(default="", description="Previous line")
    right: str = Field(default="", description="Current line")


class WordDiffResponse(BaseModel):
    """Response of the word diff endpoint."""

    segments: List[Segment] = Field(default_factory=list)


class ComparisonResult(BaseModel):
    """
    Result of a background comparison of two uploaded files.

    Wraps the diff result with job bookkeeping.
    """

    job_id: str = Field(..., description="Unique job identifier")
    status: ComparisonStatus = Field(..., description="Job status")
    created_at: datetime = Field(default_factory=_utcnow, description="Creation time")
    completed_at: Optional[datetime] = Field(None, description="Completion time")
    processing_time_seconds: Optional[float] = Field(None, description="Processing time in seconds")
    previous_file: Optional[str] = Field(None, description="Name of the previous file")
    current_file: Optional[str] = Field(None, description="Name of the current file")
    diff: Optional[DiffResult] = Field(None, description="Computed diff")
    similarity_percentage: Optional[float] = Field(
        None,
        ge=0.0,
        le=100.0,
        description="2 * unchanged / (previous lines + current lines), as a percentage"
    )
    error: Optional[str] = Field(None, description="Error message if failed")
    error_details: Optional[Dict[str, Any]] = Field(None, description="Detailed error information")


class JobStatus(BaseModel):
    """Status of a comparison job, used for polling."""

    job_id: str = Field(..., description="Unique job identifier")
    status: ComparisonStatus = Field(..., description="Job status")
    progress_percentage: Optional[float] = Field(
        None,
        ge=0.0,
        le=100.0,
        description="Progress percentage"
    )
    current_step: Optional[str] = Field(None, description="Current processing step")
    message: Optional[str] = Field(None, description="Status message")
    updated_at: datetime = Field(default_factory=_utcnow, description="Last update time")


class HealthCheck(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy", description="Service status")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check time")
    version: str = Field(..., description="API version")
    broker_connected: bool = Field(default=False, description="Celery broker connection status")
    celery_workers: int = Field(default=0, description="Number of active Celery workers")
    text_extraction_enabled: bool = Field(default=False, description="Text extraction status")
