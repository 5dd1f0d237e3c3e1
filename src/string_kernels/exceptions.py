"""
Exception hierarchy for string kernels.

Each failure mode of binding or evaluating a kernel has its own type so that
a host learner can react to it without parsing messages.

Usage::

    from string_kernels.exceptions import KernelError, NoComparableFieldError

    try:
        engine.bind(corpus)
    except NoComparableFieldError:
        print("corpus has no string field to compare")
"""


class KernelError(Exception):
    """Base exception for all string kernel errors."""


class ConfigError(KernelError, ValueError):
    """A configuration value is invalid."""


class NoComparableFieldError(KernelError, ValueError):
    """The corpus has no non-class field of string type."""


class CacheKeyOverflowError(KernelError, OverflowError):
    """An ordered id pair does not fit the 64-bit cache key encoding.

    Only reachable for pathologically large corpora. Not retried.
    """


class KernelResourceError(KernelError, MemoryError):
    """A metric could not allocate its dynamic-programming table."""


class UnboundKernelError(KernelError, RuntimeError):
    """``evaluate`` was called before ``bind``."""


class InvalidInstanceError(KernelError, IndexError):
    """An instance id is outside the bound corpus (or a sentinel is misused)."""


class UnknownMetricError(KernelError, KeyError):
    """No similarity metric is registered under the requested name."""
