"""
String similarity metrics used as kernel functions.

Four interchangeable metrics, each a pure function of two strings:

1. Edit distance      - 1 / (0.001 + levenshtein(s1, s2))
2. Common substring   - longest contiguous run / (m + n)
3. Common subsequence - LCS length / (m + n)
4. Ratcliff-Obershelp - 2 * matched characters / (m + n)

The score ranges differ on purpose: identical strings score 1000 under edit
distance, 0.5 under the substring and subsequence metrics and 1.0 under
Ratcliff-Obershelp.

All dynamic programs fill a full ``(m + 1) x (n + 1)`` table one row at a
time with numpy; the row recurrences are rewritten as cumulative min/max so
that no Python loop runs over columns.

Usage:
    from string_kernels.metrics import get_metric

    metric = get_metric("levenshtein")
    metric.compute("kitten", "sitting")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple, Protocol

import numpy as np

from string_kernels.exceptions import KernelResourceError, UnknownMetricError

if TYPE_CHECKING:
    from numpy.typing import NDArray


# =============================================================================
# Constants
# =============================================================================

# Keeps 1 / distance finite for identical strings
EDIT_DISTANCE_OFFSET = 0.001

# Ratcliff-Obershelp score when either string is empty (never 0)
EMPTY_STRING_SCORE = 0.001

_TABLE_DTYPE = np.int32


# =============================================================================
# Helpers
# =============================================================================


def _codes(text: str) -> NDArray[np.int64]:
    """Code points of ``text`` as an integer array."""
    return np.fromiter(map(ord, text), dtype=np.int64, count=len(text))


def _allocate_table(rows: int, cols: int) -> NDArray[np.int32]:
    try:
        return np.zeros((rows, cols), dtype=_TABLE_DTYPE)
    except MemoryError as exc:
        raise KernelResourceError(
            f"Cannot allocate a {rows}x{cols} dynamic-programming table"
        ) from exc


# =============================================================================
# Edit Distance
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Minimum number of single-character insertions, deletions and
    substitutions turning ``s1`` into ``s2``.

    Row recurrence::

        t[j]    = min(D[i-1][j] + 1, D[i-1][j-1] + cost(i, j))
        D[i][j] = min(t[j], D[i][j-1] + 1) = min_{k<=j}(t[k] - k) + j
    """
    a, b = _codes(s1), _codes(s2)
    m, n = len(a), len(b)
    distance = _allocate_table(m + 1, n + 1)
    offsets = np.arange(n + 1, dtype=_TABLE_DTYPE)
    distance[0, :] = offsets
    distance[:, 0] = np.arange(m + 1, dtype=_TABLE_DTYPE)

    candidates = np.empty(n + 1, dtype=_TABLE_DTYPE)
    for i in range(1, m + 1):
        cost = (b != a[i - 1]).astype(_TABLE_DTYPE)
        candidates[0] = i
        candidates[1:] = np.minimum(distance[i - 1, 1:] + 1, distance[i - 1, :-1] + cost)
        distance[i] = np.minimum.accumulate(candidates - offsets) + offsets
    return int(distance[m, n])


# =============================================================================
# Common Substring (contiguous)
# =============================================================================


def common_substring_table(s1: str, s2: str) -> NDArray[np.int32]:
    """
    Table of common suffix lengths: ``L[i][j]`` is the length of the longest
    common run ending at ``s1[i-1]`` and ``s2[j-1]``; a mismatch resets to 0.
    """
    a, b = _codes(s1), _codes(s2)
    m, n = len(a), len(b)
    lengths = _allocate_table(m + 1, n + 1)
    for i in range(1, m + 1):
        lengths[i, 1:] = np.where(b == a[i - 1], lengths[i - 1, :-1] + 1, 0)
    return lengths


def longest_common_substring_length(s1: str, s2: str) -> int:
    """Length of the longest run of characters contiguous in both strings."""
    return int(common_substring_table(s1, s2).max())


# =============================================================================
# Common Subsequence (non-contiguous)
# =============================================================================


def longest_common_subsequence_length(s1: str, s2: str) -> int:
    """
    Length of the longest common subsequence.

    On a match ``L[i-1][j-1] + 1`` always dominates both neighbours, so each
    row is the running maximum of the per-column candidates.
    """
    a, b = _codes(s1), _codes(s2)
    m, n = len(a), len(b)
    lengths = _allocate_table(m + 1, n + 1)
    for i in range(1, m + 1):
        candidates = np.where(b == a[i - 1], lengths[i - 1, :-1] + 1, lengths[i - 1, 1:])
        lengths[i, 1:] = np.maximum.accumulate(candidates)
    return int(lengths[m, n])


# =============================================================================
# Ratcliff-Obershelp
# =============================================================================


class Rectangle(NamedTuple):
    """Inclusive 1-based row/column bounds of a region of the match table."""

    row_lo: int
    row_hi: int
    col_lo: int
    col_hi: int

    @property
    def is_empty(self) -> bool:
        return self.row_lo > self.row_hi or self.col_lo > self.col_hi


def _longest_match(lengths: NDArray[np.int32], area: Rectangle) -> tuple[int, int, int]:
    """
    Longest match inside ``area`` and its table coordinates.

    Ties go to the first cell in row-major order (ascending row, then column).
    """
    block = lengths[area.row_lo : area.row_hi + 1, area.col_lo : area.col_hi + 1]
    row, col = divmod(int(np.argmax(block)), block.shape[1])
    return int(block[row, col]), area.row_lo + row, area.col_lo + col


def ratcliff_obershelp_matches(s1: str, s2: str) -> int:
    """
    Total length of the Ratcliff-Obershelp matching blocks.

    The longest common substring is found first; the regions before and
    after it (in both strings) are then searched for their own longest
    match, recursively, using an explicit stack of rectangles over the same
    match table.
    """
    lengths = common_substring_table(s1, s2)
    m, n = len(s1), len(s2)

    length, i, j = _longest_match(lengths, Rectangle(0, m, 0, n))
    total = length
    stack = [
        Rectangle(1, i - length, 1, j - length),
        Rectangle(i + 1, m, j + 1, n),
    ]
    while stack:
        area = stack.pop()
        if area.is_empty:
            continue
        length, i, j = _longest_match(lengths, area)
        if length > 0:
            total += length
            stack.append(Rectangle(area.row_lo, i - length, area.col_lo, j - length))
            stack.append(Rectangle(i + 1, area.row_hi, j + 1, area.col_hi))
    return total


def ratcliff_obershelp(s1: str, s2: str) -> float:
    if not s1 or not s2:
        return EMPTY_STRING_SCORE
    return ratcliff_obershelp_matches(s1, s2) * 2 / (len(s1) + len(s2))


# =============================================================================
# Metric objects
# =============================================================================


class SimilarityMetric(Protocol):
    """Capability the kernel engine is parameterised with."""

    name: str
    description: str

    def compute(self, s1: str, s2: str) -> float: ...


def _length_normalized(matched: int, s1: str, s2: str) -> float:
    total_length = len(s1) + len(s2)
    if total_length == 0:
        return 0.0
    return matched / total_length


class EditDistanceMetric:
    name = "levenshtein"
    description = "Levenshtein string kernel function"

    def compute(self, s1: str, s2: str) -> float:
        return 1.0 / (EDIT_DISTANCE_OFFSET + levenshtein_distance(s1, s2))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CommonSubstringMetric:
    name = "common_substring"
    description = "Longest Common Substring kernel function"

    def compute(self, s1: str, s2: str) -> float:
        return _length_normalized(longest_common_substring_length(s1, s2), s1, s2)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CommonSubsequenceMetric:
    name = "common_subsequence"
    description = "Longest Common Subsequence kernel function"

    def compute(self, s1: str, s2: str) -> float:
        return _length_normalized(longest_common_subsequence_length(s1, s2), s1, s2)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RatcliffObershelpMetric:
    name = "ratcliff_obershelp"
    description = "Ratcliff-Obershelp kernel function"

    def compute(self, s1: str, s2: str) -> float:
        return ratcliff_obershelp(s1, s2)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# =============================================================================
# Registry
# =============================================================================

METRICS: dict[str, SimilarityMetric] = {
    metric.name: metric
    for metric in (
        EditDistanceMetric(),
        CommonSubstringMetric(),
        CommonSubsequenceMetric(),
        RatcliffObershelpMetric(),
    )
}


def get_metric(name: str) -> SimilarityMetric:
    """Registered metric for ``name`` (case-insensitive)."""
    try:
        return METRICS[name.lower()]
    except KeyError:
        raise UnknownMetricError(
            f"Unknown metric '{name}'. Supported: {', '.join(METRICS)}"
        ) from None


def available_metrics() -> list[str]:
    return list(METRICS)


__all__ = [
    # Raw algorithms
    "levenshtein_distance",
    "common_substring_table",
    "longest_common_substring_length",
    "longest_common_subsequence_length",
    "ratcliff_obershelp_matches",
    "ratcliff_obershelp",
    "Rectangle",
    # Metric objects
    "SimilarityMetric",
    "EditDistanceMetric",
    "CommonSubstringMetric",
    "CommonSubsequenceMetric",
    "RatcliffObershelpMetric",
    "METRICS",
    "get_metric",
    "available_metrics",
    # Constants
    "EDIT_DISTANCE_OFFSET",
    "EMPTY_STRING_SCORE",
]
