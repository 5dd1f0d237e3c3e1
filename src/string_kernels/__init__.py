"""
String kernels for kernelized learners.

Pairwise similarity of text-bearing records under four interchangeable
metrics (edit distance, longest common substring, longest common
subsequence, Ratcliff-Obershelp), evaluated through a cached kernel engine.

Quick start::

    from string_kernels import Corpus, KernelEngine
    from string_kernels.kernel_utils import gram_matrix

    corpus = Corpus.from_texts(["spam offer", "meeting notes"], labels=["spam", "ham"])
    engine = KernelEngine.from_name("levenshtein", corpus)
    matrix = gram_matrix(engine)
"""

__version__ = "0.1.0"

from string_kernels.cache import KernelCache
from string_kernels.config import KernelConfig
from string_kernels.corpus import Corpus, CorpusProtocol, Field, FieldType, Record
from string_kernels.exceptions import (
    CacheKeyOverflowError,
    ConfigError,
    InvalidInstanceError,
    KernelError,
    KernelResourceError,
    NoComparableFieldError,
    UnboundKernelError,
    UnknownMetricError,
)
from string_kernels.kernel import SENTINEL_ID, KernelEngine
from string_kernels.metrics import (
    METRICS,
    CommonSubsequenceMetric,
    CommonSubstringMetric,
    EditDistanceMetric,
    RatcliffObershelpMetric,
    SimilarityMetric,
    available_metrics,
    get_metric,
)

__all__ = [
    "__version__",
    # Engine
    "KernelEngine",
    "KernelCache",
    "SENTINEL_ID",
    # Config
    "KernelConfig",
    # Data
    "Corpus",
    "CorpusProtocol",
    "Field",
    "FieldType",
    "Record",
    # Metrics
    "SimilarityMetric",
    "EditDistanceMetric",
    "CommonSubstringMetric",
    "CommonSubsequenceMetric",
    "RatcliffObershelpMetric",
    "METRICS",
    "get_metric",
    "available_metrics",
    # Exceptions
    "KernelError",
    "ConfigError",
    "NoComparableFieldError",
    "CacheKeyOverflowError",
    "KernelResourceError",
    "UnboundKernelError",
    "InvalidInstanceError",
    "UnknownMetricError",
]
