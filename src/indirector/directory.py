"""The process-wide table of known indirections, keyed by name."""

from __future__ import annotations

from threading import RLock

from loguru import logger

from indirector.errors import ConfigurationError
from indirector.indirection import IndirectionLike


class IndirectionDirectory:
    """Authority for whether a logical resource family exists.

    Reads are plain dictionary lookups. Writes are serialized so that two threads can never both register the same
    name.
    """

    def __init__(self) -> None:
        self._indirections: dict[str, IndirectionLike] = {}
        self._lock = RLock()

    def resolve(self, name: str) -> IndirectionLike | None:
        """Return the indirection registered under `name`, or None if there is none."""
        return self._indirections.get(name)

    def register(self, indirection: IndirectionLike) -> None:
        """Add an indirection to the directory.

        Registering the same object twice is a no-op.

        Args:
            indirection: The indirection to add.

        Raises:
            ConfigurationError: If a different indirection already uses the same name.
        """
        with self._lock:
            existing = self._indirections.get(indirection.name)
            if existing is indirection:
                return
            if existing is not None:
                raise ConfigurationError(f"Indirection '{indirection.name}' is already defined")

            self._indirections[indirection.name] = indirection
            logger.info(f"Registered indirection '{indirection.name}'")

    def names(self) -> list[str]:
        """Return the names of all registered indirections, sorted."""
        return sorted(self._indirections)

    def clear(self) -> None:
        """Forget every indirection. Only meant for test isolation."""
        with self._lock:
            self._indirections.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._indirections

    def __len__(self) -> int:
        return len(self._indirections)
