"""
Capability Classifier

Decides, before any diff runs, whether a text diff can be produced for a pair
of extraction results and, if not, why.
"""

import re
from typing import Optional

from thesis_diff.core.config import get_settings
from thesis_diff.models.diff import Capability, ExtractionResult

EXTRACTION_UNAVAILABLE_PHRASE = "text extraction is unavailable in this environment"

_PDF_VERSION_MARKER = re.compile(r"%PDF-\d\.\d")
_PDF_STREAM_MARKER = re.compile(r"/FlateDecode|endobj|stream x|/Type\s*/Page")

# Raw PDF samples longer than this are never prose.
_MAX_PLAUSIBLE_SAMPLE = 1200

CAPABILITY_MESSAGES = {
    Capability.PARSER_MISSING: (
        "Semantic diff is unavailable because text extraction is not installed. "
        "Enable the PDF parser, then upload a new version."
    ),
    Capability.BINARY_DETECTED: (
        "Binary PDF stream detected instead of semantic text. "
        "Re-upload after parser setup to get meaningful diff."
    ),
    Capability.NO_CONTENT: "No extractable text found in one or both versions for diffing.",
}


def _has_content(text: Optional[str]) -> bool:
    return bool(text and text.strip())


def compute_capability(previous: ExtractionResult, current: ExtractionResult) -> Capability:
    """
    Classify a pair of extraction results.

    Rules are checked in order and the first match wins: missing parser,
    binary content on either side, empty text on either side, then ready.
    """
    if not previous.extraction_available or not current.extraction_available:
        return Capability.PARSER_MISSING

    if previous.looks_binary or current.looks_binary:
        return Capability.BINARY_DETECTED

    if not _has_content(previous.text) or not _has_content(current.text):
        return Capability.NO_CONTENT

    return Capability.READY


def capability_message(capability: Capability) -> Optional[str]:
    """Guidance shown to the user for a capability; None when ready."""
    return CAPABILITY_MESSAGES.get(capability)


def looks_binary_text(
    text: Optional[str],
    sample_size: Optional[int] = None,
    nonprintable_ratio: Optional[float] = None
) -> bool:
    """
    Detect extracted "text" that is really a raw PDF byte stream.

    Only the first ``sample_size`` characters are inspected. Text is binary if it
    carries the extraction-unavailable notice, or if it carries PDF structure
    markers and is either long or mostly non-printable.
    """
    settings = get_settings()
    if sample_size is None:
        sample_size = settings.binary_sample_size
    if nonprintable_ratio is None:
        nonprintable_ratio = settings.binary_nonprintable_ratio

    sample = (text or "")[:sample_size]
    if not sample:
        return False

    if EXTRACTION_UNAVAILABLE_PHRASE in sample:
        return True

    if not (_PDF_VERSION_MARKER.search(sample) or _PDF_STREAM_MARKER.search(sample)):
        return False

    nonprintable = sum(
        1 for char in sample
        if not (char in "\t\n\r" or " " <= char <= "~")
    )

    return nonprintable / len(sample) > nonprintable_ratio or len(sample) > _MAX_PLAUSIBLE_SAMPLE
