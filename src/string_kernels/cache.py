"""
Fixed-size, direct-mapped kernel cache.

Every key maps to exactly one slot (``key % size``). A store unconditionally
evicts whatever the slot held, so a colliding key silently replaces an older
one and the older pair is recomputed on its next lookup. Slots are tagged
with ``key + 1`` so that an empty slot (tag ``0``) is distinguishable from
an entry for key ``0``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from string_kernels.config import DEFAULT_CACHE_SIZE
from string_kernels.exceptions import CacheKeyOverflowError

if TYPE_CHECKING:
    from numpy.typing import NDArray


# Largest key whose tag (key + 1) still fits an int64 slot
MAX_CACHE_KEY = int(np.iinfo(np.int64).max) - 1


def pair_key(id1: int, id2: int, num_instances: int) -> int:
    """
    Ordered cache key of an unordered pair of corpus ids.

    Args:
        id1: First instance id (``>= 0``)
        id2: Second instance id (``>= 0``)
        num_instances: Corpus size captured at bind time

    Returns:
        ``max * N + min``

    Raises:
        CacheKeyOverflowError: If the key does not fit the 64-bit tag encoding
    """
    if id1 > id2:
        key = id1 * num_instances + id2
    else:
        key = id2 * num_instances + id1
    if key > MAX_CACHE_KEY:
        raise CacheKeyOverflowError(
            f"Cache key for pair ({id1}, {id2}) with {num_instances} instances "
            f"exceeds {MAX_CACHE_KEY}"
        )
    return key


class KernelCache:
    """
    Direct-mapped memo table of kernel values.

    Args:
        size (int): Number of slots.
    """

    def __init__(self, size: int = DEFAULT_CACHE_SIZE):
        if size <= 0:
            raise ValueError(f"Cache size must be positive, got {size}")
        self.size = size
        self._values: NDArray[np.float64] = np.zeros(size, dtype=np.float64)
        self._tags: NDArray[np.int64] = np.zeros(size, dtype=np.int64)

    def __len__(self) -> int:
        return self.size

    def lookup(self, key: int) -> float | None:
        """Cached value for ``key``, or ``None`` if the slot holds another key or nothing."""
        slot = key % self.size
        if self._tags[slot] == key + 1:
            return float(self._values[slot])
        return None

    def store(self, key: int, value: float) -> None:
        """Overwrite the slot of ``key`` regardless of what it held."""
        slot = key % self.size
        self._values[slot] = value
        self._tags[slot] = key + 1

    @property
    def occupied(self) -> int:
        """Number of non-empty slots."""
        return int(np.count_nonzero(self._tags))

    @property
    def nbytes(self) -> int:
        return int(self._values.nbytes + self._tags.nbytes)
