"""
DiffService orchestration tests.
"""

import pytest
from pydantic import ValidationError

from thesis_diff.models.diff import (
    Capability,
    ChangeMarker,
    ChangeType,
    DiffRequest,
    DiffRowType,
    DocumentVersion,
    SegmentType,
)
from thesis_diff.services.diff_service import DiffService


@pytest.fixture
def service():
    return DiffService()


def _request(previous_text, current_text, **overrides):
    previous = dict(version_number=1, text=previous_text, locator="v1.pdf")
    current = dict(version_number=2, text=current_text, locator="v2.pdf")
    previous.update(overrides.pop("previous", {}))
    current.update(overrides.pop("current", {}))
    return DiffRequest(
        previous=DocumentVersion(**previous),
        current=DocumentVersion(**current),
        **overrides
    )


def test_ready_diff(service):
    result = service.compare(_request("alpha\nbeta\ngamma", "alpha\nbeta two\ngamma"))

    assert result.capability == Capability.READY
    assert result.message is None
    assert [row.type for row in result.rows] == [
        DiffRowType.CONTEXT,
        DiffRowType.ADDITION,
        DiffRowType.REMOVAL,
        DiffRowType.CONTEXT,
    ]
    assert (result.stats.additions, result.stats.removals, result.stats.unchanged) == (1, 1, 2)
    assert result.pdf_view is not None
    assert result.pdf_view.previous_pdf_url == "/submissions/v1.pdf/file"


def test_ready_diff_without_pdf_view(service):
    result = service.compare(_request("a", "b"), include_pdf_view=False)

    assert result.capability == Capability.READY
    assert result.pdf_view is None


def test_ready_diff_normalizes_text(service):
    result = service.compare(_request("One.  Two.", "One.\n\nTwo.\r\n"))

    assert all(row.type == DiffRowType.CONTEXT for row in result.rows)
    assert result.stats.unchanged == 2


def test_parser_missing_still_has_pdf_view(service):
    request = _request(None, None, current={"extraction_available": False})
    result = service.compare(request)

    assert result.capability == Capability.PARSER_MISSING
    assert result.rows == []
    assert result.stats.unchanged == 0
    assert result.message
    assert result.pdf_view is not None
    assert result.pdf_view.current_pdf_url == "/submissions/v2.pdf/file"
    assert result.pdf_view.changes == []


def test_binary_detected_uses_supplied_markers(service):
    marker = ChangeMarker(id="change-pages-1", label="Page count", type=ChangeType.ADDITION)
    request = _request(
        "text",
        None,
        current={"looks_binary": True},
        changes=[marker],
    )

    result = service.compare(request)

    assert result.capability == Capability.BINARY_DETECTED
    assert result.pdf_view.changes == [marker]


def test_no_content_derives_markers_from_available_text(service):
    result = service.compare(_request("   ", "A brand new chapter"))

    assert result.capability == Capability.NO_CONTENT
    assert [m.preview for m in result.pdf_view.changes] == ["A brand new chapter"]


def test_truncated_diff_is_flagged(service, settings, monkeypatch):
    monkeypatch.setattr(settings, "diff_line_limit", 10)
    previous = "\n".join(f"line {i}" for i in range(20))
    current = "\n".join(f"line {i}" for i in range(5, 25))

    result = service.compare(_request(previous, current))

    assert result.capability == Capability.READY
    assert result.stats.truncated is True
    assert len(result.rows) <= 10


def test_versions_must_be_ordered():
    with pytest.raises(ValidationError):
        _request("a", "b", current={"version_number": 1})


def test_versions_are_immutable():
    version = DocumentVersion(version_number=1, text="a")
    with pytest.raises(ValidationError):
        version.text = "b"


def test_word_diff(service):
    segments = service.word_diff("the quick fox", "the quick brown fox")
    assert [s.type for s in segments] == [
        SegmentType.EQUAL,
        SegmentType.EQUAL,
        SegmentType.ADD,
        SegmentType.EQUAL,
    ]


def test_summary(service):
    result = service.compare(_request("a\nb\nc\nd", "a\nb\nc\ne"))
    summary = service.generate_diff_summary(result)

    assert summary["capability"] == "ready"
    assert summary["unchanged"] == 3
    assert summary["total_rows"] == 5
    assert summary["similarity_percentage"] == pytest.approx(75.0)


def test_summary_without_rows(service):
    result = service.compare(_request("", ""))
    summary = service.generate_diff_summary(result)

    assert summary["capability"] == "no_content"
    assert summary["similarity_percentage"] == 0.0
