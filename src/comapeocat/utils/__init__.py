"""Small filesystem and async helpers with no domain knowledge."""

from comapeocat.utils.concurrency import AsyncLazy
from comapeocat.utils.fs import atomic_output, atomic_write

__all__ = ["AsyncLazy", "atomic_output", "atomic_write"]
