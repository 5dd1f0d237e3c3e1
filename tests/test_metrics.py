"""
Tests for the string similarity metrics.

The vectorised dynamic programs are checked against reference values and
against straightforward cell-by-cell implementations of the recurrences.
"""

import random

import numpy as np
import pytest

from string_kernels.exceptions import KernelResourceError, UnknownMetricError
from string_kernels.metrics import (
    EDIT_DISTANCE_OFFSET,
    EMPTY_STRING_SCORE,
    METRICS,
    CommonSubsequenceMetric,
    CommonSubstringMetric,
    EditDistanceMetric,
    RatcliffObershelpMetric,
    available_metrics,
    common_substring_table,
    get_metric,
    levenshtein_distance,
    longest_common_subsequence_length,
    longest_common_substring_length,
    ratcliff_obershelp,
    ratcliff_obershelp_matches,
)


# =============================================================================
# Cell-by-cell references
# =============================================================================


def naive_levenshtein(a: str, b: str) -> int:
    d = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(len(a) + 1):
        d[i][0] = i
    for j in range(len(b) + 1):
        d[0][j] = j
    for i in range(1, len(a) + 1):
        for j in range(1, len(b) + 1):
            d[i][j] = min(
                d[i - 1][j] + 1,
                d[i][j - 1] + 1,
                d[i - 1][j - 1] + (0 if a[i - 1] == b[j - 1] else 1),
            )
    return d[len(a)][len(b)]


def naive_substring_table(a: str, b: str) -> list[list[int]]:
    table = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(1, len(a) + 1):
        for j in range(1, len(b) + 1):
            if a[i - 1] == b[j - 1]:
                table[i][j] = table[i - 1][j - 1] + 1
    return table


def naive_subsequence(a: str, b: str) -> int:
    table = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(1, len(a) + 1):
        for j in range(1, len(b) + 1):
            if a[i - 1] == b[j - 1]:
                table[i][j] = table[i - 1][j - 1] + 1
            else:
                table[i][j] = max(table[i - 1][j], table[i][j - 1])
    return table[len(a)][len(b)]


def naive_ratcliff_obershelp_matches(a: str, b: str) -> int:
    table = naive_substring_table(a, b)

    def longest(row_lo, row_hi, col_lo, col_hi):
        best, coords = 0, (0, 0)
        for i in range(row_lo, row_hi + 1):
            for j in range(col_lo, col_hi + 1):
                if table[i][j] > best:
                    best, coords = table[i][j], (i, j)
        return best, coords

    best, (i, j) = longest(0, len(a), 0, len(b))
    total = best
    areas = [(1, i - best, 1, j - best), (i + 1, len(a), j + 1, len(b))]
    while areas:
        row_lo, row_hi, col_lo, col_hi = areas.pop()
        if row_lo > row_hi or col_lo > col_hi:
            continue
        best, (i, j) = longest(row_lo, row_hi, col_lo, col_hi)
        if best > 0:
            total += best
            areas.append((row_lo, i - best, col_lo, j - best))
            areas.append((i + 1, row_hi, j + 1, col_hi))
    return total


def random_pairs(count: int, alphabet: str = "abc ", max_length: int = 12, seed: int = 0):
    rng = random.Random(seed)
    pairs = []
    for _ in range(count):
        a = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, max_length)))
        b = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, max_length)))
        pairs.append((a, b))
    return pairs


RANDOM_PAIRS = random_pairs(150)


# =============================================================================
# Edit Distance
# =============================================================================


class TestEditDistance:
    @pytest.mark.parametrize(
        "s1,s2,expected",
        [
            ("kitten", "sitting", 3),
            ("", "", 0),
            ("abc", "", 3),
            ("", "abcd", 4),
            ("flaw", "lawn", 2),
            ("intention", "execution", 5),
            ("same", "same", 0),
            ("a", "b", 1),
        ],
    )
    def test_reference_distances(self, s1, s2, expected):
        assert levenshtein_distance(s1, s2) == expected

    def test_kitten_sitting_score(self):
        score = EditDistanceMetric().compute("kitten", "sitting")
        assert score == 1.0 / (EDIT_DISTANCE_OFFSET + 3)
        assert score == pytest.approx(1 / 3.001)

    def test_empty_strings_score(self):
        score = EditDistanceMetric().compute("", "")
        assert score == 1 / 0.001
        assert score == pytest.approx(1000.0)

    def test_identical_strings_are_not_normalized(self):
        assert EditDistanceMetric().compute("spam", "spam") == pytest.approx(1000.0)

    def test_score_decreases_with_distance(self):
        metric = EditDistanceMetric()
        scores = [metric.compute("abcd", other) for other in ("abcd", "abcx", "abxx", "axxx")]
        assert scores == sorted(scores, reverse=True)
        assert len(set(scores)) == 4

    @pytest.mark.parametrize("s1,s2", RANDOM_PAIRS)
    def test_matches_cell_by_cell_dp(self, s1, s2):
        assert levenshtein_distance(s1, s2) == naive_levenshtein(s1, s2)

    def test_unicode_characters(self):
        assert levenshtein_distance("café", "cafe") == 1
        assert levenshtein_distance("日本語", "日本") == 1


# =============================================================================
# Common Substring
# =============================================================================


class TestCommonSubstring:
    @pytest.mark.parametrize(
        "s1,s2,expected",
        [
            ("abcdef", "zcdef", 4),
            ("abc", "xyz", 0),
            ("abab", "baba", 3),
            ("", "abc", 0),
            ("xabcx", "yyabc", 3),
        ],
    )
    def test_reference_lengths(self, s1, s2, expected):
        assert longest_common_substring_length(s1, s2) == expected

    def test_reference_score(self):
        assert CommonSubstringMetric().compute("abcdef", "zcdef") == 4 / 11

    def test_identity_scores_half(self):
        assert CommonSubstringMetric().compute("hello", "hello") == 0.5

    def test_both_empty_scores_zero(self):
        assert CommonSubstringMetric().compute("", "") == 0.0

    def test_mismatch_resets_run(self):
        # "ab" and "cd" are separated in s2, so only runs of 2 exist
        assert longest_common_substring_length("abcd", "abxcd") == 2

    @pytest.mark.parametrize("s1,s2", RANDOM_PAIRS)
    def test_table_matches_cell_by_cell_dp(self, s1, s2):
        table = common_substring_table(s1, s2)
        assert table.shape == (len(s1) + 1, len(s2) + 1)
        assert table.tolist() == naive_substring_table(s1, s2)


# =============================================================================
# Common Subsequence
# =============================================================================


class TestCommonSubsequence:
    @pytest.mark.parametrize(
        "s1,s2,expected",
        [
            ("abcde", "ace", 3),
            ("AGGTAB", "GXTXAYB", 4),
            ("abc", "abc", 3),
            ("abc", "def", 0),
            ("", "abc", 0),
        ],
    )
    def test_reference_lengths(self, s1, s2, expected):
        assert longest_common_subsequence_length(s1, s2) == expected

    def test_reference_score(self):
        assert CommonSubsequenceMetric().compute("abcde", "ace") == 3 / 8

    def test_identity_scores_half(self):
        assert CommonSubsequenceMetric().compute("hello", "hello") == 0.5

    def test_both_empty_scores_zero(self):
        assert CommonSubsequenceMetric().compute("", "") == 0.0

    @pytest.mark.parametrize("s1,s2", RANDOM_PAIRS)
    def test_matches_cell_by_cell_dp(self, s1, s2):
        assert longest_common_subsequence_length(s1, s2) == naive_subsequence(s1, s2)


# =============================================================================
# Ratcliff-Obershelp
# =============================================================================


class TestRatcliffObershelp:
    @pytest.mark.parametrize("text", ["a", "hello", "free entry to win cash", "aaaa"])
    def test_identity_scores_exactly_one(self, text):
        assert ratcliff_obershelp(text, text) == 1.0

    @pytest.mark.parametrize("s1,s2", [("", "abc"), ("abc", ""), ("", "")])
    def test_empty_argument_scores_constant(self, s1, s2):
        assert ratcliff_obershelp(s1, s2) == EMPTY_STRING_SCORE
        assert RatcliffObershelpMetric().compute(s1, s2) == 0.001

    def test_reference_score(self):
        # WIKIM + IA
        assert ratcliff_obershelp_matches("WIKIMEDIA", "WIKIMANIA") == 7
        assert ratcliff_obershelp("WIKIMEDIA", "WIKIMANIA") == pytest.approx(14 / 18)

    def test_no_common_characters(self):
        assert ratcliff_obershelp_matches("abc", "xyz") == 0
        assert ratcliff_obershelp("abc", "xyz") == 0.0

    def test_matches_on_both_sides_of_longest_block(self):
        # longest block "cde", then "a" before and "g" after
        assert ratcliff_obershelp_matches("abcdefg", "axcdeyg") == 5

    @pytest.mark.parametrize("s1,s2", RANDOM_PAIRS)
    def test_matches_reference_stack_search(self, s1, s2):
        assert ratcliff_obershelp_matches(s1, s2) == naive_ratcliff_obershelp_matches(s1, s2)

    def test_long_alternating_input(self):
        s1 = "ab" * 300
        s2 = "ba" * 300
        matches = ratcliff_obershelp_matches(s1, s2)
        assert 0 < matches <= len(s1)


# =============================================================================
# Metric objects and registry
# =============================================================================


class TestMetricRegistry:
    def test_four_metrics_registered(self):
        assert available_metrics() == [
            "levenshtein",
            "common_substring",
            "common_subsequence",
            "ratcliff_obershelp",
        ]

    def test_get_metric_is_case_insensitive(self):
        assert isinstance(get_metric("Levenshtein"), EditDistanceMetric)
        assert get_metric("RATCLIFF_OBERSHELP") is METRICS["ratcliff_obershelp"]

    def test_unknown_metric(self):
        with pytest.raises(UnknownMetricError):
            get_metric("cosine")
        with pytest.raises(KeyError):
            get_metric("cosine")

    @pytest.mark.parametrize("name", list(METRICS))
    def test_descriptions(self, name):
        metric = get_metric(name)
        assert metric.name == name
        assert "kernel" in metric.description.lower()

    @pytest.mark.parametrize("name", list(METRICS))
    def test_metrics_are_pure(self, name):
        metric = get_metric(name)
        first = metric.compute("free entry to win", "win a free cruise")
        second = metric.compute("free entry to win", "win a free cruise")
        assert isinstance(first, float)
        assert np.float64(first).tobytes() == np.float64(second).tobytes()

    @pytest.mark.parametrize("name", ["levenshtein", "common_substring", "common_subsequence"])
    def test_symmetric_metrics(self, name):
        metric = get_metric(name)
        for s1, s2 in RANDOM_PAIRS[:30]:
            assert metric.compute(s1, s2) == metric.compute(s2, s1)

    @pytest.mark.parametrize("name", list(METRICS))
    def test_allocation_failure_is_surfaced(self, name, monkeypatch):
        def fail(*args, **kwargs):
            raise MemoryError("simulated")

        monkeypatch.setattr(np, "zeros", fail)
        with pytest.raises(KernelResourceError) as excinfo:
            get_metric(name).compute("abc", "abd")
        assert isinstance(excinfo.value, MemoryError)
        assert isinstance(excinfo.value.__cause__, MemoryError)
