"""Indirections: named logical resource families that dispatch to a configured terminus."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from threading import RLock
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from loguru import logger
from pydantic import BaseModel

from indirector import indirector_settings
from indirector.errors import ConfigurationError

if TYPE_CHECKING:
    from indirector.registry import Registry
    from indirector.terminus import Terminus


def _with_version(instance: Any, version: Any) -> Any:
    """Return `instance` carrying `version`, copying it rather than modifying the original.

    Objects without a `version` attribute, and objects that already carry `version`, are returned unchanged.
    """
    if not hasattr(instance, "version") or instance.version == version:
        return instance
    if isinstance(instance, BaseModel):
        return instance.model_copy(update={"version": version})

    stamped = copy.copy(instance)
    stamped.version = version
    return stamped


@runtime_checkable
class IndirectionLike(Protocol):
    """The capabilities a terminus class needs from the indirection it is bound to."""

    name: str
    model: Any

    def register_terminus_type(self, terminus_type: str) -> None:
        """Record that a terminus type serves this indirection."""
        ...


class Indirection:
    """One logical resource family, e.g. `certificate` or `node`.

    An indirection knows its data model and which terminus types have been registered against it. Requests made
    through [find()][(c).find], [save()][(c).save], [search()][(c).search] and [destroy()][(c).destroy] are
    dispatched to a fresh instance of the configured terminus class, optionally fronted by a cache terminus.

    The terminus and cache classes are read from `IndirectorSettings.terminus_classes` and
    `IndirectorSettings.cache_classes` unless they are set explicitly.

    Creating an indirection registers it with the registry's directory. The name must be unique for that registry.
    """

    def __init__(
        self,
        name: str,
        model: Any,
        *,
        registry: Registry | None = None,
        terminus_class: str | None = None,
        cache_class: str | None = None,
        doc: str | None = None,
    ) -> None:
        """Create and register an indirection.

        Args:
            name: The unique, lowercase name of the indirection.
            model: The type of the objects this indirection manages.
            registry: The registry to register with. Defaults to the process-wide registry.
            terminus_class: The name of the terminus that serves requests. Not validated until first use.
            cache_class: The name of a terminus used as a cache in front of the terminus.
            doc: Operator-facing help text.

        Raises:
            ConfigurationError: If an indirection with the same name is already registered.
        """
        if registry is None:
            from indirector.registry import default_registry

            registry = default_registry

        self._name = name
        self._model = model
        self._registry = registry
        self._terminus_class = terminus_class
        self._cache_class = cache_class
        self.doc = doc

        self._known_terminus_types: set[str] = set()
        self._lock = RLock()

        registry.indirections.register(self)

    def __repr__(self) -> str:
        return f"Indirection(name={self._name!r}, model={self._model!r})"

    @property
    def name(self) -> str:
        """The unique name of this indirection."""
        return self._name

    @property
    def model(self) -> Any:
        """The type of the objects this indirection manages."""
        return self._model

    @property
    def registry(self) -> Registry:
        """The registry this indirection belongs to."""
        return self._registry

    @property
    def known_terminus_types(self) -> frozenset[str]:
        """The terminus types registered against this indirection so far."""
        return frozenset(self._known_terminus_types)

    def register_terminus_type(self, terminus_type: str) -> None:
        """Record that `terminus_type` serves this indirection. The set only grows."""
        with self._lock:
            if terminus_type not in self._known_terminus_types:
                self._known_terminus_types.add(terminus_type)
                logger.debug(f"Indirection '{self._name}' now knows terminus type '{terminus_type}'")

    @property
    def terminus_class(self) -> str | None:
        """The name of the terminus serving this indirection, from the explicit value or the settings."""
        if self._terminus_class is not None:
            return self._terminus_class
        return indirector_settings.terminus_classes.get(self._name)

    @terminus_class.setter
    def terminus_class(self, terminus_name: str) -> None:
        # Fails with TerminusLookupError before anything changes
        self._registry.lookup(self._name, terminus_name)
        self._terminus_class = terminus_name

    @property
    def cache_class(self) -> str | None:
        """The name of the cache terminus, from the explicit value or the settings. None disables caching."""
        if self._cache_class is not None:
            return self._cache_class
        return indirector_settings.cache_classes.get(self._name)

    @cache_class.setter
    def cache_class(self, terminus_name: str | None) -> None:
        if terminus_name is not None:
            self._registry.lookup(self._name, terminus_name)
        self._cache_class = terminus_name

    def terminus(self, terminus_name: str | None = None) -> Terminus:
        """Construct a terminus instance for a single operation.

        Args:
            terminus_name: The terminus to construct. Defaults to [terminus_class][(c).terminus_class].

        Returns:
            Terminus: A new instance of the concrete terminus class.

        Raises:
            ConfigurationError: If no terminus name is given and none is configured.
            TerminusLookupError: If the terminus cannot be found, even after autoloading.
        """
        terminus_name = terminus_name or self.terminus_class
        if terminus_name is None:
            raise ConfigurationError(f"No terminus class has been configured for indirection '{self._name}'")

        return self._registry.lookup(self._name, terminus_name).create()

    def cache(self) -> Terminus | None:
        """Construct the cache terminus for a single operation, or return None if caching is not configured."""
        if self.cache_class is None:
            return None
        return self.terminus(self.cache_class)

    def find(self, key: str) -> Any | None:
        """Find the object stored under `key`.

        When a cache is configured, the terminus is asked for its version of `key` first. If the cache holds a copy
        at least that recent, the cached copy is returned. Otherwise the terminus is asked for the object, and a copy
        carrying the terminus' version is written to the cache and returned. Without a cache, results that have no
        version are returned as a copy stamped with the current UTC time.
        """
        terminus = self.terminus()
        cache = self.cache()

        current_version = None
        if cache is not None:
            current_version = terminus.version(key)
            if current_version is not None and cache.fresh(key, current_version):
                logger.debug(f"Using cached {self._name} for '{key}'")
                return cache.find(key)

        result = terminus.find(key)
        if result is None:
            logger.debug(f"No {self._name} found for '{key}' in terminus '{terminus.name}'")
            return None

        if current_version is not None:
            result = _with_version(result, current_version)
        elif getattr(result, "version", None) is None:
            result = _with_version(result, datetime.now(timezone.utc))

        if cache is not None:
            logger.debug(f"Caching {self._name} '{key}' in '{cache.name}'")
            cache.save(result)

        return result

    def save(self, instance: Any) -> None:
        """Save `instance` to the terminus, then save a copy carrying the terminus' version to the cache, if any."""
        terminus = self.terminus()
        terminus.save(instance)

        cache = self.cache()
        if cache is None:
            return

        key = getattr(instance, "name", None)
        current_version = None if key is None else terminus.version(str(key))
        cache.save(instance if current_version is None else _with_version(instance, current_version))

    def search(self, query: Any) -> list[Any]:
        """Search the terminus. The cache is never consulted for searches."""
        return list(self.terminus().search(query))

    def destroy(self, instance: Any) -> None:
        """Remove `instance` from the terminus and then from the cache, if any."""
        self.terminus().destroy(instance)

        cache = self.cache()
        if cache is not None:
            cache.destroy(instance)
