"""
Tests for the background comparison task.

Tasks run eagerly through ``apply`` against the in-memory transports set up in
conftest, so no worker is needed.
"""

import structlog

from thesis_diff.models.diff import ExtractionResult
from thesis_diff.services.text_extractor import TextExtractor
from thesis_diff.workers.tasks import compare_versions_task


def _run(job_id, previous, current):
    return compare_versions_task.apply(kwargs={
        "job_id": job_id,
        "previous_path": str(previous),
        "current_path": str(current),
    }).get()


def test_ready_pair_of_pdfs(make_pdf):
    """Two readable PDFs give a ready line diff plus structural markers."""
    previous = make_pdf("v1.pdf", "Chapter one\nMethods\nResults")
    current = make_pdf("v2.pdf", "Chapter one\nMethods revised\nResults", "Appendix")

    result = _run("job-ready", previous, current)

    assert result["status"] == "completed"
    assert result["job_id"] == "job-ready"
    diff = result["diff"]
    assert diff["capability"] == "ready"
    assert diff["stats"]["additions"] >= 1
    assert diff["stats"]["removals"] >= 1
    assert diff["stats"]["unchanged"] >= 1

    change_ids = [change["id"] for change in diff["pdf_view"]["changes"]]
    assert "change-pages-1" in change_ids
    assert "change-words-1" in change_ids
    assert diff["pdf_view"]["previous_pdf_url"] == "/submissions/v1.pdf/file"
    assert 0.0 < result["similarity_percentage"] < 100.0

    assert not previous.exists()
    assert not current.exists()


def test_unreadable_file_falls_back_to_pdf_view(make_pdf, tmp_path):
    """A file that is not really a PDF is reported as binary, not as a failure."""
    previous = tmp_path / "broken.pdf"
    previous.write_bytes(b"this is not a pdf document " * 10)
    current = make_pdf("v2.pdf", "Chapter one")

    result = _run("job-broken", previous, current)

    assert result["status"] == "completed"
    diff = result["diff"]
    assert diff["capability"] == "binary_detected"
    assert diff["rows"] == []
    assert diff["message"]
    assert diff["pdf_view"]["current_pdf_url"] == "/submissions/v2.pdf/file"
    assert result["similarity_percentage"] == 0.0


def test_final_failure_returns_error_and_cleans_up(make_pdf, monkeypatch):
    """Once retries are spent the job reports the error and removes its inputs."""
    previous = make_pdf("v1.pdf", "Chapter one")
    current = make_pdf("v2.pdf", "Chapter two")

    def _explode(self, file_path):
        raise RuntimeError("extractor crashed")

    monkeypatch.setattr(TextExtractor, "extract", _explode)
    monkeypatch.setattr(compare_versions_task, "max_retries", 0)

    result = _run("job-failed", previous, current)

    assert result["status"] == "failed"
    assert result["error"] == "extractor crashed"
    assert result["error_details"] == {"exc_type": "RuntimeError"}
    assert result["diff"] is None
    assert not previous.exists()
    assert not current.exists()


def test_job_id_is_bound_to_log_context(make_pdf, monkeypatch):
    """Events logged while a job runs carry its id; the context is cleared afterwards."""
    previous = make_pdf("v1.pdf", "Chapter one")
    current = make_pdf("v2.pdf", "Chapter one")
    seen = []

    def _record(self, file_path):
        seen.append(structlog.contextvars.get_contextvars().get("job_id"))
        return ExtractionResult(text=None, extraction_available=False, looks_binary=False)

    monkeypatch.setattr(TextExtractor, "extract", _record)

    result = _run("job-context", previous, current)

    assert result["diff"]["capability"] == "parser_missing"
    assert seen == ["job-context", "job-context"]
    assert "job_id" not in structlog.contextvars.get_contextvars()
