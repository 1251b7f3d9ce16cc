"""Reusable storage mixins for concrete termini.

Combine a store with an abstract terminus type to get a working terminus:

- MemoryStore: keeps objects in a per-class dictionary. Useful as a cache terminus and in tests.
- JsonFileStore: keeps one JSON document per key on the local filesystem, versioned by file mtime.
"""

from .json_file import JsonFileStore
from .memory import MemoryStore

__all__ = [
    "JsonFileStore",
    "MemoryStore",
]
