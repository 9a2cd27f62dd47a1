"""
API tests.
"""

from fastapi.testclient import TestClient

from thesis_diff.main import app

client = TestClient(app)


def _version(number, text, **extra):
    return {"version_number": number, "text": text, "locator": f"v{number}.pdf", **extra}


def test_root_endpoint():
    """Test root endpoint returns service info."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "service" in data
    assert "version" in data
    assert data["status"] == "running"
    assert data["endpoints"]["diff"] == "/api/v1/diff"


def test_health_endpoint():
    """Test health check endpoint."""
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert "status" in data
    assert "version" in data
    assert data["text_extraction_enabled"] is True


def test_diff_ready():
    """Two text versions produce line rows."""
    response = client.post("/api/v1/diff", json={
        "previous": _version(1, "alpha\nbeta\ngamma"),
        "current": _version(2, "alpha\nbeta two\ngamma"),
    })
    assert response.status_code == 200
    data = response.json()
    assert data["capability"] == "ready"
    assert [row["type"] for row in data["rows"]] == ["context", "addition", "removal", "context"]
    assert data["rows"][1]["left_line"] is None
    assert data["stats"] == {"additions": 1, "removals": 1, "unchanged": 2, "truncated": False}


def test_diff_parser_missing_returns_pdf_view():
    """A version without extraction falls back to the PDF view."""
    response = client.post("/api/v1/diff", json={
        "previous": _version(1, None, extraction_available=False),
        "current": _version(2, "text"),
    })
    assert response.status_code == 200
    data = response.json()
    assert data["capability"] == "parser_missing"
    assert data["rows"] == []
    assert data["pdf_view"]["previous_pdf_url"] == "/submissions/v1.pdf/file"


def test_diff_rejects_unordered_versions():
    """Previous must be older than current."""
    response = client.post("/api/v1/diff", json={
        "previous": _version(3, "a"),
        "current": _version(2, "b"),
    })
    assert response.status_code == 422


def test_diff_lines_with_ceiling():
    """Raw line diff honours an explicit ceiling."""
    response = client.post("/api/v1/diff/lines", json={
        "previous_lines": [f"p{i}" for i in range(10)],
        "current_lines": [f"c{i}" for i in range(10)],
        "ceiling": 4,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["stats"]["truncated"] is True
    assert len(data["rows"]) <= 4


def test_diff_lines_empty_previous():
    """Everything is an addition when there is no previous text."""
    response = client.post("/api/v1/diff/lines", json={"current_lines": ["x", "y"]})
    assert response.status_code == 200
    rows = response.json()["rows"]
    assert [row["type"] for row in rows] == ["addition", "addition"]


def test_diff_lines_empty_with_negative_ceiling():
    """Empty inputs never fail, whatever the ceiling."""
    response = client.post("/api/v1/diff/lines", json={
        "previous_lines": [],
        "current_lines": [],
        "ceiling": -1,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["rows"] == []
    assert data["stats"]["truncated"] is False


def test_diff_lines_ceiling_cannot_exceed_configured_limit(settings, monkeypatch):
    """A requested ceiling above diff_line_limit is clamped to the limit."""
    monkeypatch.setattr(settings, "diff_line_limit", 10)
    response = client.post("/api/v1/diff/lines", json={
        "previous_lines": [f"p{i}" for i in range(20)],
        "current_lines": [f"c{i}" for i in range(20)],
        "ceiling": 10 ** 9,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["stats"]["truncated"] is True
    assert len(data["rows"]) <= 10


def test_diff_words():
    """Word diff highlights the inserted word."""
    response = client.post("/api/v1/diff/words", json={
        "left": "the quick fox",
        "right": "the quick brown fox",
    })
    assert response.status_code == 200
    assert response.json()["segments"] == [
        {"text": "the ", "type": "equal"},
        {"text": "quick ", "type": "equal"},
        {"text": "brown ", "type": "add"},
        {"text": "fox", "type": "equal"},
    ]


def test_compare_missing_files():
    """Test compare endpoint with missing files."""
    response = client.post("/api/v1/compare")
    assert response.status_code == 422


def test_compare_rejects_non_pdf():
    """Only PDF uploads are accepted."""
    response = client.post(
        "/api/v1/compare",
        files={
            "previous_file": ("v1.docx", b"content", "application/octet-stream"),
            "current_file": ("v2.pdf", b"content", "application/pdf"),
        },
    )
    assert response.status_code == 400


def test_compare_rejects_unordered_versions():
    """Version numbers must increase."""
    response = client.post(
        "/api/v1/compare",
        files={
            "previous_file": ("v1.pdf", b"content", "application/pdf"),
            "current_file": ("v2.pdf", b"content", "application/pdf"),
        },
        data={"previous_version": "2", "current_version": "2"},
    )
    assert response.status_code == 400


def test_job_status_not_found():
    """Unknown jobs report as pending."""
    response = client.get("/api/v1/jobs/nonexistent")
    assert response.status_code == 200
    assert response.json()["status"] == "pending"


def test_results_not_found():
    """Unknown jobs have no results."""
    response = client.get("/api/v1/results/nonexistent")
    assert response.status_code == 404
