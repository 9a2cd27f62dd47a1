"""
Line-Level Diff

Aligns two sequences of lines with a longest-common-subsequence table and
classifies every aligned unit as context, addition or removal.

The alignment helpers here are shared with the word-level diff, which runs the
same table and backtrack over whitespace-preserving tokens.
"""

import re
from typing import Iterator, List, Optional, Sequence, Tuple

from thesis_diff.core.config import get_settings
from thesis_diff.core.logging import get_logger
from thesis_diff.models.diff import DiffRow, DiffRowType, DiffStats, LineDiff

logger = get_logger(__name__)

EQUAL = "equal"
INSERT = "insert"
DELETE = "delete"

_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE_RUN = re.compile(r"\s+")


def lcs_table(a: Sequence, b: Sequence) -> List[List[int]]:
    """
    Build the LCS table over suffixes.

    ``table[i][j]`` is the length of the longest common subsequence of
    ``a[i:]`` and ``b[j:]``; row ``len(a)`` and column ``len(b)`` are zero.
    """
    n, m = len(a), len(b)
    table = [[0] * (m + 1) for _ in range(n + 1)]

    for i in range(n - 1, -1, -1):
        row, below = table[i], table[i + 1]
        item = a[i]
        for j in range(m - 1, -1, -1):
            if item == b[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = below[j] if below[j] >= row[j + 1] else row[j + 1]

    return table


def align(a: Sequence, b: Sequence) -> Iterator[Tuple[str, int, int]]:
    """
    Walk an optimal alignment of ``a`` and ``b`` from the start.

    Yields ``(op, i, j)`` where ``op`` is EQUAL (consumes ``a[i]`` and ``b[j]``),
    INSERT (consumes ``b[j]``) or DELETE (consumes ``a[i]``).

    On ties between inserting and deleting, the insertion is emitted first.
    """
    n, m = len(a), len(b)

    # Equal items at the head are always on an optimal path.
    start = 0
    while start < n and start < m and a[start] == b[start]:
        yield EQUAL, start, start
        start += 1

    if start == n:
        for j in range(start, m):
            yield INSERT, start, j
        return
    if start == m:
        for i in range(start, n):
            yield DELETE, i, start
        return

    table = lcs_table(a[start:], b[start:])
    i = j = 0
    rest_a, rest_b = n - start, m - start

    while i < rest_a or j < rest_b:
        if i < rest_a and j < rest_b and a[start + i] == b[start + j]:
            yield EQUAL, start + i, start + j
            i += 1
            j += 1
        elif j < rest_b and (i >= rest_a or table[i][j + 1] >= table[i + 1][j]):
            yield INSERT, start + i, start + j
            j += 1
        else:
            yield DELETE, start + i, start + j
            i += 1


def truncate_lines(
    previous_lines: Sequence[str],
    current_lines: Sequence[str],
    ceiling: int
) -> Tuple[List[str], List[str], bool]:
    """
    Bound the combined line count of two sequences.

    When ``len(previous) + len(current)`` exceeds ``ceiling`` both are cut to a
    prefix proportional to their size: the previous side keeps
    ``ceiling * len(previous) // total`` lines and the current side keeps the
    remainder of the ceiling.

    Returns:
        Tuple of (previous_lines, current_lines, truncated)
    """
    total = len(previous_lines) + len(current_lines)
    if total == 0 or total <= ceiling:
        return list(previous_lines), list(current_lines), False

    ceiling = max(ceiling, 0)
    keep_previous = ceiling * len(previous_lines) // total
    keep_current = min(ceiling - keep_previous, len(current_lines))

    return (
        list(previous_lines[:keep_previous]),
        list(current_lines[:keep_current]),
        True,
    )


def compute_line_diff(
    previous_lines: Sequence[str],
    current_lines: Sequence[str],
    ceiling: Optional[int] = None
) -> LineDiff:
    """
    Compute the line-level diff of two line sequences.

    Args:
        previous_lines: Lines of the previous version
        current_lines: Lines of the current version
        ceiling: Combined line ceiling (defaults to ``diff_line_limit``)

    Returns:
        LineDiff with ordered rows and stats matching the row types
    """
    if ceiling is None:
        ceiling = get_settings().diff_line_limit

    previous, current, truncated = truncate_lines(previous_lines, current_lines, ceiling)
    if truncated:
        logger.info(
            "line_diff_truncated",
            previous_lines=len(previous_lines),
            current_lines=len(current_lines),
            ceiling=ceiling
        )

    rows: List[DiffRow] = []
    stats = DiffStats(truncated=truncated)
    left_line = 1
    right_line = 1

    for op, i, j in align(previous, current):
        if op == EQUAL:
            rows.append(DiffRow(
                type=DiffRowType.CONTEXT,
                left_line=left_line,
                right_line=right_line,
                left_text=previous[i],
                right_text=current[j],
            ))
            left_line += 1
            right_line += 1
            stats.unchanged += 1
        elif op == INSERT:
            rows.append(DiffRow(
                type=DiffRowType.ADDITION,
                right_line=right_line,
                right_text=current[j],
            ))
            right_line += 1
            stats.additions += 1
        else:
            rows.append(DiffRow(
                type=DiffRowType.REMOVAL,
                left_line=left_line,
                left_text=previous[i],
            ))
            left_line += 1
            stats.removals += 1

    logger.debug(
        "line_diff_computed",
        rows=len(rows),
        additions=stats.additions,
        removals=stats.removals,
        unchanged=stats.unchanged,
        truncated=truncated
    )

    return LineDiff(rows=rows, stats=stats)


def normalize_diff_lines(text: Optional[str]) -> List[str]:
    """
    Split extracted text into comparable lines.

    Text without any line break (typical for flattened PDF extraction) is split
    into sentences instead. Every line is stripped, inner whitespace collapsed,
    and empty lines dropped.
    """
    if not text:
        return []

    cleaned = text.replace("\r\n", "\n").strip()
    if not cleaned:
        return []

    if "\n" in cleaned:
        lines = cleaned.split("\n")
    else:
        lines = _SENTENCE_BREAK.split(cleaned)

    normalized = (_WHITESPACE_RUN.sub(" ", line.strip()) for line in lines)
    return [line for line in normalized if line]
