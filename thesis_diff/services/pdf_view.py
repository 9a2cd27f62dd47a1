"""
PDF Fallback Descriptor

Builds the side-by-side PDF view returned whenever a text diff is not possible,
along with coarse change markers derived independently of the line diff.
"""

import re
from typing import Any, Dict, List, Optional

from thesis_diff.core.config import get_settings
from thesis_diff.core.logging import get_logger
from thesis_diff.models.diff import Capability, ChangeMarker, ChangeType, PdfView
from thesis_diff.services.capability import CAPABILITY_MESSAGES, looks_binary_text

logger = get_logger(__name__)

_LINE_BREAKS = re.compile(r"\n+")

# Lines shorter than this are too short to call an edit.
_MIN_EDIT_TOKENS = 5


def locator_to_url(locator: Optional[str]) -> Optional[str]:
    """Turn a storage locator into a PDF URL, or None for non-PDF files."""
    if not locator or not locator.lower().endswith(".pdf"):
        return None
    return get_settings().pdf_url_template.format(locator=locator)


def build_pdf_view(
    previous_locator: Optional[str] = None,
    current_locator: Optional[str] = None,
    changes: Optional[List[ChangeMarker]] = None
) -> PdfView:
    """
    Build the PDF fallback descriptor.

    Args:
        previous_locator: Storage locator of the previous file, if stored
        current_locator: Storage locator of the current file, if stored
        changes: Coarse change markers, if any were derived

    Returns:
        PdfView with nullable URLs and the ordered markers
    """
    return PdfView(
        previous_pdf_url=locator_to_url(previous_locator),
        current_pdf_url=locator_to_url(current_locator),
        changes=list(changes or []),
    )


def is_likely_edit(previous_line: str, current_line: str) -> bool:
    """
    Whether ``current_line`` reads as a rewrite of ``previous_line``.

    Both lines need a handful of words and must share most of them.
    """
    if previous_line == current_line:
        return False

    previous_tokens = previous_line.lower().split()
    current_tokens = current_line.lower().split()
    if len(previous_tokens) < _MIN_EDIT_TOKENS or len(current_tokens) < _MIN_EDIT_TOKENS:
        return False

    previous_set = set(previous_tokens)
    overlap = sum(1 for token in current_tokens if token in previous_set)
    ratio = overlap / max(len(previous_tokens), len(current_tokens))
    return ratio >= get_settings().edit_overlap_threshold


def _chunks(text: str) -> List[str]:
    return [line.strip() for line in _LINE_BREAKS.split(text or "") if line.strip()]


def build_change_markers(previous_text: Optional[str], current_text: Optional[str]) -> List[ChangeMarker]:
    """
    Derive coarse change markers from two extracted texts.

    Lines only present in the current text become additions, lines only present
    in the previous text become removals, and current lines that closely
    resemble a previous line become edits.
    """
    settings = get_settings()

    if looks_binary_text(previous_text) or looks_binary_text(current_text):
        return [
            ChangeMarker(
                id="change-note-1",
                label="Diff Notice",
                type=ChangeType.EDIT,
                preview=CAPABILITY_MESSAGES[Capability.BINARY_DETECTED],
            )
        ]

    previous_chunks = _chunks(previous_text)
    current_chunks = _chunks(current_text)
    previous_set = set(previous_chunks)
    current_set = set(current_chunks)
    preview_chars = settings.marker_preview_chars

    added = [line for line in current_chunks if line not in previous_set]
    removed = [line for line in previous_chunks if line not in current_set]
    edited = [
        line for line in current_chunks
        if any(is_likely_edit(previous, line) for previous in previous_chunks)
    ]

    markers = [
        ChangeMarker(
            id=f"change-add-{index}",
            label=f"Addition {index}",
            type=ChangeType.ADDITION,
            preview=line[:preview_chars],
        )
        for index, line in enumerate(added[:settings.max_addition_markers], start=1)
    ]
    markers += [
        ChangeMarker(
            id=f"change-rem-{index}",
            label=f"Removal {index}",
            type=ChangeType.REMOVAL,
            preview=line[:preview_chars],
        )
        for index, line in enumerate(removed[:settings.max_removal_markers], start=1)
    ]
    markers += [
        ChangeMarker(
            id=f"change-edit-{index}",
            label=f"Edit {index}",
            type=ChangeType.EDIT,
            preview=line[:preview_chars],
        )
        for index, line in enumerate(edited[:settings.max_edit_markers], start=1)
    ]

    return markers[:settings.max_change_markers]


def structural_change_markers(structure: Dict[str, Any]) -> List[ChangeMarker]:
    """
    Turn a structural comparison of two PDFs into coarse markers.

    ``structure`` is the dictionary returned by
    ``TextExtractor.compare_structure``.
    """
    differences = structure.get("differences", {})
    markers: List[ChangeMarker] = []

    page_diff = differences.get("page_count_diff", 0)
    if page_diff:
        markers.append(ChangeMarker(
            id="change-pages-1",
            label="Page count",
            type=ChangeType.ADDITION if page_diff > 0 else ChangeType.REMOVAL,
            preview=f"{abs(page_diff)} page(s) {'added' if page_diff > 0 else 'removed'}",
        ))

    word_diff = differences.get("word_count_diff", 0)
    if word_diff:
        markers.append(ChangeMarker(
            id="change-words-1",
            label="Word count",
            type=ChangeType.ADDITION if word_diff > 0 else ChangeType.REMOVAL,
            preview=f"{abs(word_diff)} word(s) {'added' if word_diff > 0 else 'removed'}",
        ))

    if differences.get("images_changed"):
        markers.append(ChangeMarker(
            id="change-images-1",
            label="Figures",
            type=ChangeType.EDIT,
            preview="Images were added or removed",
        ))

    if differences.get("tables_changed"):
        markers.append(ChangeMarker(
            id="change-tables-1",
            label="Tables",
            type=ChangeType.EDIT,
            preview="Tables were added or removed",
        ))

    logger.debug("structural_markers_built", markers=len(markers))
    return markers
