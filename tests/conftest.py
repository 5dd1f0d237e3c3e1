"""
Shared fixtures for the string kernel test suite.
"""

import pytest

from string_kernels import Corpus, Field, FieldType


class CountingMetric:
    """Metric stub that records every comparison it is asked for."""

    name = "counting"
    description = "Counting test metric"

    def __init__(self):
        self.calls = []

    def compute(self, s1: str, s2: str) -> float:
        self.calls.append((s1, s2))
        return float(len(s1) * 100 + len(s2) + len(self.calls))


@pytest.fixture
def sample_texts() -> list[str]:
    return [
        "win a free cruise now",
        "meeting moved to friday",
        "free entry to win cash",
        "see you at the meeting",
        "",
    ]


@pytest.fixture
def corpus(sample_texts) -> Corpus:
    """Labelled corpus: string text field followed by the class field."""
    labels = ["spam", "ham", "spam", "ham", "ham"]
    return Corpus.from_texts(sample_texts, labels)


@pytest.fixture
def mixed_corpus() -> Corpus:
    """Class field is a string and comes first; the text field is third."""
    fields = [
        Field("label", FieldType.STRING),
        Field("length", FieldType.NUMERIC),
        Field("body", FieldType.STRING),
    ]
    records = [
        ("a", 3.0, "abc"),
        ("b", 4.0, "abcd"),
        ("a", 3.0, "xbc"),
        ("b", 5.0, "hello"),
    ]
    return Corpus(fields, records, class_index=0)


@pytest.fixture
def counting_metric() -> CountingMetric:
    return CountingMetric()
