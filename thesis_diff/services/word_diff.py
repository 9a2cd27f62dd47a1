"""
Word-Level Diff

Intra-line highlighting for a pair of lines shown side by side. Tokens keep
their trailing whitespace so that joining them gives back the original line.
"""

import re
from typing import List, Literal, Tuple

from thesis_diff.models.diff import Segment, SegmentType
from thesis_diff.services.line_diff import EQUAL, INSERT, align

_TOKEN = re.compile(r"\S+\s*|\s+")


def tokenize(text: str) -> List[str]:
    """
    Split text into words with their trailing whitespace.

    Leading whitespace becomes a token of its own.

    >>> tokenize("the quick fox")
    ['the ', 'quick ', 'fox']
    """
    return _TOKEN.findall(text or "")


def compute_word_diff(left: str, right: str) -> List[Segment]:
    """
    Align two lines word by word.

    Args:
        left: Previous line
        right: Current line

    Returns:
        Ordered segments; segments that are not ``remove`` rebuild ``right``
        and segments that are not ``add`` rebuild ``left``
    """
    left_tokens = tokenize(left)
    right_tokens = tokenize(right)
    segments: List[Segment] = []

    for op, i, j in align(left_tokens, right_tokens):
        if op == EQUAL:
            segments.append(Segment(text=left_tokens[i], type=SegmentType.EQUAL))
        elif op == INSERT:
            segments.append(Segment(text=right_tokens[j], type=SegmentType.ADD))
        else:
            segments.append(Segment(text=left_tokens[i], type=SegmentType.REMOVE))

    return segments


def render_side(
    segments: List[Segment],
    side: Literal["left", "right"]
) -> List[Tuple[str, bool]]:
    """
    Project segments onto one side of a side-by-side view.

    The left side shows equal tokens unmarked and removed tokens marked, and
    hides added tokens. The right side is symmetric.

    Returns:
        List of (text, marked) pairs
    """
    if side == "left":
        hidden, marked = SegmentType.ADD, SegmentType.REMOVE
    else:
        hidden, marked = SegmentType.REMOVE, SegmentType.ADD

    return [
        (segment.text, segment.type == marked)
        for segment in segments
        if segment.type != hidden
    ]
