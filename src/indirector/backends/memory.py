"""In-memory terminus storage."""

from __future__ import annotations

from fnmatch import fnmatchcase
from threading import RLock
from typing import Any, ClassVar

from loguru import logger


class MemoryStore:
    """Mixin storing objects in a dictionary shared by all instances of the concrete terminus class.

    Objects are keyed by their `name` attribute. Each subclass gets its own dictionary.

    Example:
        ```python
        class MemoryCertificate(MemoryStore, CertificateTerminus, name="memory"):
            pass
        ```
    """

    _instances: ClassVar[dict[str, Any]] = {}
    _instances_lock: ClassVar[RLock] = RLock()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._instances = {}
        cls._instances_lock = RLock()

    @classmethod
    def clear(cls) -> None:
        """Drop every stored object."""
        with cls._instances_lock:
            cls._instances.clear()

    @staticmethod
    def _key_for(instance: Any) -> str:
        if isinstance(instance, str):
            return instance
        return str(instance.name)

    def find(self, key: str) -> Any | None:
        return self._instances.get(key)

    def save(self, instance: Any) -> None:
        with self._instances_lock:
            self._instances[self._key_for(instance)] = instance

    def search(self, query: Any) -> list[Any]:
        """Return every stored object, or those whose key matches the glob pattern `query`."""
        if query is None:
            return list(self._instances.values())
        return [instance for key, instance in self._instances.items() if fnmatchcase(key, str(query))]

    def destroy(self, instance: Any) -> None:
        key = self._key_for(instance)
        with self._instances_lock:
            if self._instances.pop(key, None) is None:
                logger.debug(f"Nothing stored under '{key}' to destroy")
