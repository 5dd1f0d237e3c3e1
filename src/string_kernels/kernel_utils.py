"""
Kernel matrix helpers built on :class:`~string_kernels.kernel.KernelEngine`.

This module provides the matrices a kernelized learner consumes directly:
1. Gram matrix - symmetric matrix over corpus members (cached pairs)
2. Kernel row - one unseen record against corpus members (sentinel path)
3. Parallel Gram matrix - ThreadPoolExecutor over rows, one engine per worker

Usage:
    from string_kernels.kernel_utils import gram_matrix, kernel_row

    train = gram_matrix(engine)
    test_row = kernel_row(engine, record)
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import numpy as np
from tqdm import tqdm

from string_kernels.config import KernelConfig
from string_kernels.kernel import SENTINEL_ID, KernelEngine

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from string_kernels.corpus import CorpusProtocol, RecordProtocol
    from string_kernels.metrics import SimilarityMetric

logger = logging.getLogger(__name__)


def _resolve_ids(engine: KernelEngine, ids: Sequence[int] | None) -> list[int]:
    if ids is None:
        return list(range(engine.num_instances))
    return [int(i) for i in ids]


# =============================================================================
# Gram Matrix
# =============================================================================


def gram_matrix(
    engine: KernelEngine,
    ids: Sequence[int] | None = None,
    show_progress: bool = False,
) -> NDArray[np.float64]:
    """
    Symmetric kernel matrix over corpus members.

    Only the lower triangle (including the diagonal) is evaluated; the upper
    triangle is mirrored.

    Args:
        engine: Bound kernel engine
        ids: Corpus ids to include (None for the whole corpus)
        show_progress: Show a tqdm progress bar over rows

    Returns:
        Matrix of shape (len(ids), len(ids))
    """
    ids = _resolve_ids(engine, ids)
    size = len(ids)
    matrix = np.zeros((size, size), dtype=np.float64)
    before = engine.evaluation_count

    rows = tqdm(range(size), desc=f"Kernel {engine.name}", unit="row", disable=not show_progress)
    for row in rows:
        for col in range(row + 1):
            value = engine.evaluate(ids[row], ids[col])
            matrix[row, col] = value
            matrix[col, row] = value

    logger.info(
        "Computed %dx%d %s gram matrix (%d evaluations)",
        size,
        size,
        engine.name,
        engine.evaluation_count - before,
    )
    return matrix


def kernel_row(
    engine: KernelEngine,
    record: RecordProtocol,
    ids: Sequence[int] | None = None,
) -> NDArray[np.float64]:
    """
    Kernel values of an unseen record against corpus members.

    These comparisons go through the sentinel id and are never cached.
    """
    ids = _resolve_ids(engine, ids)
    return np.array([engine.evaluate(SENTINEL_ID, i, record) for i in ids], dtype=np.float64)


# =============================================================================
# Parallel Gram Matrix
# =============================================================================


def parallel_gram_matrix(
    metric: SimilarityMetric,
    corpus: CorpusProtocol,
    ids: Sequence[int] | None = None,
    config: KernelConfig | None = None,
    num_workers: int | None = None,
    min_rows_for_parallel: int | None = None,
) -> NDArray[np.float64]:
    """
    Gram matrix computed by a thread pool.

    Engines are not thread-safe, so every worker thread lazily binds its own
    engine to the shared, read-only corpus.

    Args:
        metric: Similarity metric
        corpus: Corpus shared by all workers
        ids: Corpus ids to include (None for the whole corpus)
        config: Engine configuration for the per-worker engines
        num_workers: Number of parallel workers
        min_rows_for_parallel: Minimum rows before enabling parallelism

    Returns:
        Matrix of shape (len(ids), len(ids))
    """
    config = config or KernelConfig()
    num_workers = num_workers or config.num_workers
    if min_rows_for_parallel is None:
        min_rows_for_parallel = config.min_rows_for_parallel

    ids = list(range(corpus.size())) if ids is None else [int(i) for i in ids]
    size = len(ids)

    # For small matrices, run sequentially
    if size < min_rows_for_parallel or num_workers == 1:
        return gram_matrix(KernelEngine(metric, corpus, config), ids, config.show_progress)

    local = threading.local()

    def worker_engine() -> KernelEngine:
        engine = getattr(local, "engine", None)
        if engine is None:
            engine = local.engine = KernelEngine(metric, corpus, config)
        return engine

    def compute_row(row: int) -> NDArray[np.float64]:
        engine = worker_engine()
        return np.array(
            [engine.evaluate(ids[row], ids[col]) for col in range(row + 1)],
            dtype=np.float64,
        )

    matrix = np.zeros((size, size), dtype=np.float64)
    with ThreadPoolExecutor(max_workers=num_workers) as executor:
        rows = executor.map(compute_row, range(size))
        progress = tqdm(
            rows, total=size, desc=f"Kernel {metric.name}", unit="row", disable=not config.show_progress
        )
        for row, values in enumerate(progress):
            matrix[row, : row + 1] = values
            matrix[: row + 1, row] = values

    logger.info("Computed %dx%d %s gram matrix with %d workers", size, size, metric.name, num_workers)
    return matrix


__all__ = [
    "gram_matrix",
    "kernel_row",
    "parallel_gram_matrix",
]
