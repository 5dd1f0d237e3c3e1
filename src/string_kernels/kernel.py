"""
Kernel engine: a similarity metric bound to a corpus and a kernel cache.

The engine is what a kernelized learner calls with pairs of instance ids.
Pairs of corpus members are memoised in a direct-mapped
:class:`~string_kernels.cache.KernelCache`; comparisons of an unseen record
(first id ``SENTINEL_ID``) against a corpus member are always recomputed.

Usage:
    from string_kernels import SENTINEL_ID, Corpus, KernelEngine, Record

    corpus = Corpus.from_texts(["spam offer", "meeting notes", "spam deal"])
    engine = KernelEngine.from_name("ratcliff_obershelp", corpus)
    engine.evaluate(0, 2)
    engine.evaluate(SENTINEL_ID, 1, Record(("free offer",)))

An engine is not thread-safe. Give each worker thread its own engine bound
to the same corpus, or serialize calls to ``evaluate``.
"""

from __future__ import annotations

import logging

from string_kernels.cache import KernelCache, pair_key
from string_kernels.config import KernelConfig
from string_kernels.corpus import CorpusProtocol, RecordProtocol, find_comparison_field
from string_kernels.exceptions import (
    InvalidInstanceError,
    NoComparableFieldError,
    UnboundKernelError,
)
from string_kernels.metrics import SimilarityMetric, get_metric

logger = logging.getLogger(__name__)

# Instance id of a record that is not part of the bound corpus
SENTINEL_ID = -1


class KernelEngine:
    """
    Evaluates a :class:`~string_kernels.metrics.SimilarityMetric` over the
    instances of a bound corpus.

    Args:
        metric (SimilarityMetric): The metric to evaluate.
        corpus (CorpusProtocol | None): Bound immediately when given.
        config (KernelConfig | None): Cache size and related settings;
            validated on construction (raises ConfigError).

    Attributes:
        metric (SimilarityMetric): The metric this engine evaluates.
        config (KernelConfig): Active configuration.
    """

    def __init__(
        self,
        metric: SimilarityMetric,
        corpus: CorpusProtocol | None = None,
        config: KernelConfig | None = None,
    ):
        self.metric = metric
        self.config = config or KernelConfig()
        self.config.validate()
        self._corpus: CorpusProtocol | None = None
        self._field_index = -1
        self._num_instances = 0
        self._cache: KernelCache | None = None
        self._evaluations = 0
        self._cache_hits = 0
        if corpus is not None:
            self.bind(corpus)

    @classmethod
    def from_name(
        cls,
        name: str | None = None,
        corpus: CorpusProtocol | None = None,
        config: KernelConfig | None = None,
    ) -> "KernelEngine":
        """Engine for a registered metric; ``name`` defaults to ``config.metric``."""
        config = config or KernelConfig()
        return cls(get_metric(name or config.metric), corpus, config)

    def __repr__(self) -> str:
        state = f"bound, N={self._num_instances}" if self.is_bound else "unbound"
        return f"{type(self).__name__}({self.metric!r}, {state})"

    # ── Description ───────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self.metric.name

    @property
    def description(self) -> str:
        """Human readable description of the metric, for diagnostics only."""
        return self.metric.description

    # ── Lifecycle ─────────────────────────────────────────────────

    @property
    def is_bound(self) -> bool:
        return self._corpus is not None

    @property
    def corpus(self) -> CorpusProtocol | None:
        return self._corpus

    @property
    def field_index(self) -> int:
        """Index of the compared field (``-1`` while unbound)."""
        return self._field_index

    @property
    def num_instances(self) -> int:
        return self._num_instances

    def bind(self, corpus: CorpusProtocol) -> None:
        """
        Bind the engine to ``corpus``.

        Locates the comparison field, captures the corpus size, allocates an
        empty cache and zeroes the counters. The corpus must not change while
        bound; binding again replaces all of this state.

        Raises:
            NoComparableFieldError: If the corpus has no non-class string field
        """
        field_index = find_comparison_field(corpus)
        if field_index is None:
            raise NoComparableFieldError(
                "Corpus has no string field besides the class field to compare."
            )
        self._corpus = corpus
        self._field_index = field_index
        self._num_instances = corpus.size()
        self._cache = KernelCache(self.config.cache_size)
        self._evaluations = 0
        self._cache_hits = 0
        logger.debug(
            "Bound %s to %d instances (field %d, %d cache slots)",
            self.metric.name,
            self._num_instances,
            field_index,
            self.config.cache_size,
        )

    def reset(self) -> None:
        """
        Release the cache.

        The corpus binding and the counters are kept; the next evaluation
        starts from an empty cache.
        """
        self._cache = None
        logger.debug("Released %s cache", self.metric.name)

    # ── Counters ──────────────────────────────────────────────────

    @property
    def evaluation_count(self) -> int:
        """Metric computations performed since bind (cache hits excluded)."""
        return self._evaluations

    @property
    def cache_hits(self) -> int:
        """Evaluations answered from the cache since bind."""
        return self._cache_hits

    @property
    def cache(self) -> KernelCache | None:
        return self._cache

    # ── Evaluation ────────────────────────────────────────────────

    def evaluate(self, id1: int, id2: int, record: RecordProtocol | None = None) -> float:
        """
        Kernel value of two instances.

        Args:
            id1: Corpus id, or ``SENTINEL_ID`` for the unseen ``record``
            id2: Corpus id (or ``SENTINEL_ID`` together with ``id1``)
            record: The unseen record, required when ``id1`` is the sentinel

        Returns:
            The metric score; ``1.0`` when both ids are the sentinel.

        Raises:
            UnboundKernelError: If :meth:`bind` was never called
            InvalidInstanceError: If an id is outside the corpus
            CacheKeyOverflowError: If the pair cannot be encoded as a cache key
            KernelResourceError: If the metric cannot allocate its table
        """
        # An unseen record is maximally similar to itself
        if id1 == SENTINEL_ID and id2 == SENTINEL_ID:
            return 1.0

        corpus = self._corpus
        if corpus is None:
            raise UnboundKernelError("Kernel engine is not bound to a corpus; call bind() first.")
        self._check_id(id2)

        if id1 == SENTINEL_ID:
            if record is None:
                raise InvalidInstanceError("An unseen record is required with the sentinel id.")
            result = self._compute(record, corpus.record(id2))
            self._evaluations += 1
            return result

        self._check_id(id1)
        key = pair_key(id1, id2, self._num_instances)
        if self._cache is None:
            self._cache = KernelCache(self.config.cache_size)
        cached = self._cache.lookup(key)
        if cached is not None:
            self._cache_hits += 1
            return cached

        # Compute in key order so the value does not depend on argument order
        result = self._compute(corpus.record(max(id1, id2)), corpus.record(min(id1, id2)))
        self._evaluations += 1
        self._cache.store(key, result)
        return result

    def _compute(self, first: RecordProtocol, second: RecordProtocol) -> float:
        return self.metric.compute(
            first.string_field(self._field_index),
            second.string_field(self._field_index),
        )

    def _check_id(self, instance_id: int) -> None:
        if not 0 <= instance_id < self._num_instances:
            raise InvalidInstanceError(
                f"Instance id {instance_id} outside corpus of {self._num_instances} instances"
            )
