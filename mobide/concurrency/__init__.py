"""Concurrency primitives."""

from mobide.concurrency.locks import KeyedLocks

__all__ = ["KeyedLocks"]
