"""
Configuration for string kernel engines and kernel matrix helpers.

Create from environment variables::

    config = KernelConfig.from_env()

Or with explicit values::

    config = KernelConfig(metric="levenshtein", cache_size=100003)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

# =============================================================================
# Defaults
# =============================================================================

# Prime, well above typical pair counts of training sets
DEFAULT_CACHE_SIZE = 250007

DEFAULT_METRIC = "ratcliff_obershelp"

# Number of workers for parallel kernel matrix rows
DEFAULT_NUM_WORKERS = 8
MIN_ROWS_FOR_PARALLEL = 64

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class KernelConfig:
    """
    Settings shared by :class:`~string_kernels.kernel.KernelEngine` and the
    helpers in :mod:`string_kernels.kernel_utils`.

    Each instance is self-contained; nothing here is read from global state
    after construction.
    """

    # ── Cache ─────────────────────────────────────────────────────
    cache_size: int = DEFAULT_CACHE_SIZE

    # ── Metric ────────────────────────────────────────────────────
    metric: str = DEFAULT_METRIC

    # ── Kernel matrices ───────────────────────────────────────────
    num_workers: int = DEFAULT_NUM_WORKERS
    min_rows_for_parallel: int = MIN_ROWS_FOR_PARALLEL
    show_progress: bool = False

    # ── Logging ───────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def from_env(cls) -> "KernelConfig":
        """Build a config snapshot from ``STRING_KERNELS_*`` environment variables."""
        show_progress = os.getenv("STRING_KERNELS_SHOW_PROGRESS", "").lower() in _TRUE_VALUES
        return cls(
            cache_size=int(os.getenv("STRING_KERNELS_CACHE_SIZE", str(DEFAULT_CACHE_SIZE))),
            metric=os.getenv("STRING_KERNELS_METRIC", DEFAULT_METRIC).lower(),
            num_workers=int(os.getenv("STRING_KERNELS_NUM_WORKERS", str(DEFAULT_NUM_WORKERS))),
            show_progress=show_progress,
            log_level=os.getenv("STRING_KERNELS_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> bool:
        """
        Check sizes, worker counts and the metric name.

        Raises :class:`~string_kernels.exceptions.ConfigError` on failure.
        """
        from string_kernels.exceptions import ConfigError
        from string_kernels.metrics import METRICS

        if self.cache_size <= 0:
            raise ConfigError(f"cache_size must be positive, got {self.cache_size}")
        if self.num_workers <= 0:
            raise ConfigError(f"num_workers must be positive, got {self.num_workers}")
        if self.min_rows_for_parallel < 0:
            raise ConfigError(
                f"min_rows_for_parallel must be non-negative, got {self.min_rows_for_parallel}"
            )
        if self.metric.lower() not in METRICS:
            raise ConfigError(
                f"Unknown metric '{self.metric}'. Supported: {', '.join(METRICS)}.\n"
                "  Set via: export STRING_KERNELS_METRIC=levenshtein"
            )
        return True
