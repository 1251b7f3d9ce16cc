"""The terminus class registry.

Terminus classes register themselves here when they are defined (see [Terminus][indirector.terminus.Terminus]).
Callers then look them up by `(terminus_type, terminus_name)`; a miss triggers one autoload attempt through the
autoloader owned by that terminus type.
"""

from __future__ import annotations

from enum import auto
from threading import RLock
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict
from strenum import StrEnum

from indirector.autoload import Autoloader, AutoloaderFactory, default_autoloader_factory
from indirector.directory import IndirectionDirectory
from indirector.errors import InvalidOperationError, TerminusLookupError


class BackendKind(StrEnum):
    """Whether a terminus class can serve requests."""

    abstract = auto()
    """The per-indirection base type. Anchors a family of termini and can never be instantiated."""
    concrete = auto()
    """An implementation of an abstract terminus type, backed by some storage or transport."""


class TerminusClassDescriptor(BaseModel):
    """Registration metadata for one terminus class."""

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
    )

    terminus_type: str
    """The name of the abstract terminus type this class belongs to. Equal to the indirection name."""

    terminus_name: str
    """The name of this terminus within its type, e.g. `rest` or `file`."""

    kind: BackendKind
    """Whether the class is an abstract terminus type or a concrete terminus."""

    terminus_class: type
    """The class itself."""

    @property
    def is_abstract(self) -> bool:
        """Whether the described class is an abstract terminus type."""
        return self.kind == BackendKind.abstract

    @property
    def indirection_name(self) -> str | None:
        """The name of the indirection the class is currently bound to."""
        indirection = getattr(self.terminus_class, "indirection", None)
        return None if indirection is None else indirection.name

    def create(self, *args: Any, **kwargs: Any) -> Any:
        """Construct an instance of the described terminus class.

        Raises:
            InvalidOperationError: If the class is an abstract terminus type.
        """
        if self.is_abstract:
            raise InvalidOperationError(f"Cannot create an instance of abstract terminus type '{self.terminus_type}'")
        return self.terminus_class(*args, **kwargs)


class Registry:
    """Owns every terminus class, indirection and autoloader known to one process (or one test).

    Lookups of registered termini do not take any lock. Registrations are serialized on a registry-wide lock, and
    the autoload path is serialized per terminus type so only one autoloader is ever built for a type and two
    threads never load the same type concurrently.
    """

    indirections: IndirectionDirectory
    """The directory of indirections registered with this registry."""

    def __init__(self, *, autoloader_factory: AutoloaderFactory | None = None) -> None:
        """Create an empty registry.

        Args:
            autoloader_factory: The discovery policy: maps a terminus type to the autoloader for it. Defaults to
                [default_autoloader_factory()][indirector.autoload.default_autoloader_factory].
        """
        self.indirections = IndirectionDirectory()
        self._autoloader_factory = autoloader_factory or default_autoloader_factory()

        self._terminus_classes: dict[str, dict[str, TerminusClassDescriptor]] = {}
        self._abstract_termini: dict[str, TerminusClassDescriptor] = {}
        self._autoloaders: dict[str, Autoloader] = {}
        self._type_locks: dict[str, RLock] = {}

        self._lock = RLock()

    def register(self, descriptor: TerminusClassDescriptor) -> None:
        """Store a terminus class descriptor.

        A concrete descriptor is keyed by `(terminus_type, terminus_name)`; an abstract one by its terminus type.
        Registering under a key that is already taken replaces the earlier entry, so reloaded plugins win.
        """
        with self._lock:
            if descriptor.is_abstract:
                previous = self._abstract_termini.get(descriptor.terminus_type)
                self._abstract_termini[descriptor.terminus_type] = descriptor
            else:
                by_name = self._terminus_classes.setdefault(descriptor.terminus_type, {})
                previous = by_name.get(descriptor.terminus_name)
                by_name[descriptor.terminus_name] = descriptor

        if previous is not None and previous.terminus_class is not descriptor.terminus_class:
            logger.warning(
                f"Replacing {descriptor.kind} terminus '{descriptor.terminus_type}/{descriptor.terminus_name}': "
                f"{previous.terminus_class.__qualname__} -> {descriptor.terminus_class.__qualname__}"
            )
        else:
            logger.debug(
                f"Registered {descriptor.kind} terminus '{descriptor.terminus_type}/{descriptor.terminus_name}'"
            )

    def lookup(self, terminus_type: str, terminus_name: str) -> TerminusClassDescriptor:
        """Return the concrete terminus registered under `terminus_type` and `terminus_name`.

        On a miss, the autoloader for `terminus_type` (built on first use) is asked to load `terminus_name` and the
        registry is checked again.

        Raises:
            TerminusLookupError: If the terminus is still not registered after the autoload attempt.
        """
        descriptor = self._get(terminus_type, terminus_name)
        if descriptor is not None:
            return descriptor

        with self._type_lock(terminus_type):
            # Another thread may have loaded it while we waited
            descriptor = self._get(terminus_type, terminus_name)
            if descriptor is None:
                autoloader = self._autoloader_for(terminus_type)
                logger.debug(f"Terminus '{terminus_type}/{terminus_name}' not registered, autoloading")
                loaded = autoloader.load(terminus_name)
                descriptor = self._get(terminus_type, terminus_name)
                if descriptor is None and loaded:
                    logger.warning(
                        f"Autoloading '{terminus_name}' via {autoloader!r} did not register "
                        f"terminus '{terminus_type}/{terminus_name}'"
                    )

        if descriptor is None:
            raise TerminusLookupError(f"Could not find terminus '{terminus_name}' for terminus type '{terminus_type}'")

        return descriptor

    def abstract_terminus(self, terminus_type: str) -> TerminusClassDescriptor | None:
        """Return the abstract terminus type registered for an indirection, if any."""
        return self._abstract_termini.get(terminus_type)

    def terminus_classes(self, terminus_type: str) -> list[str]:
        """Return the names of the concrete termini registered under `terminus_type` so far, sorted."""
        return sorted(self._terminus_classes.get(terminus_type, {}))

    def autoloader(self, terminus_type: str) -> Autoloader | None:
        """Return the autoloader built for `terminus_type`, or None if none has been needed yet."""
        return self._autoloaders.get(terminus_type)

    def clear(self) -> None:
        """Forget every terminus class, autoloader and indirection."""
        with self._lock:
            self._terminus_classes.clear()
            self._abstract_termini.clear()
            self._autoloaders.clear()
            self._type_locks.clear()
            self.indirections.clear()

    def _get(self, terminus_type: str, terminus_name: str) -> TerminusClassDescriptor | None:
        return self._terminus_classes.get(terminus_type, {}).get(terminus_name)

    def _type_lock(self, terminus_type: str) -> RLock:
        with self._lock:
            return self._type_locks.setdefault(terminus_type, RLock())

    def _autoloader_for(self, terminus_type: str) -> Autoloader:
        # Callers hold the lock for terminus_type
        autoloader = self._autoloaders.get(terminus_type)
        if autoloader is None:
            autoloader = self._autoloader_factory(terminus_type)
            with self._lock:
                self._autoloaders[terminus_type] = autoloader
            logger.info(f"Created autoloader {autoloader!r} for terminus type '{terminus_type}'")
        return autoloader


default_registry: Registry = Registry()
"""The process-wide registry used by indirections and terminus types that are not given one explicitly."""
