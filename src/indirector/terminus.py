"""The terminus class hierarchy.

Termini form a two level hierarchy below [Terminus][(m).Terminus]:

- A direct subclass of `Terminus` is the *abstract terminus type* of one indirection. Its name, and its terminus
  type, is the indirection name. It cannot be instantiated.
- A subclass of an abstract terminus type is a *concrete terminus*, e.g. `rest` or `file`. It inherits the terminus
  type and indirection from its ancestor and is registered under `(terminus_type, name)`.

Registration happens once, when the class statement executes:

```python
Indirection("certificate", Certificate)


class CertificateTerminus(Terminus, indirection="certificate"):
    pass


class RestCertificate(CertificateTerminus, name="rest"):
    def find(self, key: str) -> Certificate | None: ...
```

Without the `indirection=` or `name=` keywords the names are derived from the class name with
[canonicalize()][indirector.naming.canonicalize].
"""

from __future__ import annotations

from typing import Any, ClassVar

from indirector.errors import ArgumentError, ConfigurationError, InvalidOperationError
from indirector.indirection import IndirectionLike
from indirector.naming import canonicalize
from indirector.registry import BackendKind, Registry, TerminusClassDescriptor, default_registry


class _IndirectionModel:
    """Reads `indirection.model` from the class, whether accessed on the class or an instance."""

    def __get__(self, instance: object, owner: type[Terminus]) -> Any:
        if owner.indirection is None:
            return None
        return owner.indirection.model


class Terminus:
    """Base class of every terminus.

    Concrete termini implement any subset of [find()][(c).find], [save()][(c).save], [search()][(c).search] and
    [destroy()][(c).destroy]. The ones left out raise `InvalidOperationError`. [version()][(c).version] and
    [fresh()][(c).fresh] are built on `find`, and backends with a cheaper way to tell an object's version (a file
    mtime, an ETag) should override `version` directly.

    Instances are cheap and meant to be created for a single operation, usually through
    [Indirection.terminus()][indirector.indirection.Indirection.terminus].
    """

    name: ClassVar[str | None] = None
    """The terminus name. For abstract terminus types, the indirection name."""

    terminus_type: ClassVar[str | None] = None
    """The name of the abstract terminus type this class belongs to."""

    indirection: ClassVar[IndirectionLike | None] = None
    """The indirection this terminus serves."""

    kind: ClassVar[BackendKind | None] = None
    """Whether this class is an abstract terminus type or a concrete terminus."""

    registry: ClassVar[Registry] = default_registry
    """The registry this class is registered with, chosen by its abstract terminus type."""

    description: ClassVar[str | None] = None
    """Operator-facing help text. Has no effect on dispatch."""

    model = _IndirectionModel()
    """The type of the objects this terminus manages, taken from its indirection."""

    def __init_subclass__(
        cls,
        *,
        name: str | None = None,
        indirection: str | None = None,
        registry: Registry | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)

        if Terminus in cls.__bases__:
            if name is not None:
                raise ConfigurationError(
                    f"Abstract terminus type {cls.__qualname__} is named after its indirection; use indirection="
                )
            cls._define_abstract(indirection or canonicalize(cls.__name__), registry or default_registry)
        else:
            if indirection is not None or registry is not None:
                raise ConfigurationError(
                    f"Terminus {cls.__qualname__} inherits its indirection and registry from its terminus type"
                )
            cls._define_concrete(name or canonicalize(cls.__name__))

    @classmethod
    def _define_abstract(cls, indirection_name: str, registry: Registry) -> None:
        resolved = registry.indirections.resolve(indirection_name)
        if resolved is None:
            raise ConfigurationError(
                f"Could not find indirection '{indirection_name}' for abstract terminus type {cls.__qualname__}"
            )

        cls.registry = registry
        cls.kind = BackendKind.abstract
        cls.name = indirection_name
        cls.terminus_type = indirection_name
        cls.indirection = resolved
        resolved.register_terminus_type(indirection_name)

        registry.register(
            TerminusClassDescriptor(
                terminus_type=indirection_name,
                terminus_name=indirection_name,
                kind=BackendKind.abstract,
                terminus_class=cls,
            )
        )

    @classmethod
    def _define_concrete(cls, terminus_name: str) -> None:
        if cls.indirection is None or cls.terminus_type is None:
            raise ConfigurationError(f"Terminus {cls.__qualname__} does not have a bound indirection")

        cls.kind = BackendKind.concrete
        cls.name = terminus_name

        cls.registry.register(
            TerminusClassDescriptor(
                terminus_type=cls.terminus_type,
                terminus_name=terminus_name,
                kind=BackendKind.concrete,
                terminus_class=cls,
            )
        )

    @classmethod
    def desc(cls, text: str) -> None:
        """Set the help text shown to operators for this terminus."""
        cls.description = text

    @classmethod
    def set_indirection(cls, indirection: str | IndirectionLike) -> None:
        """Bind this class to an indirection.

        Args:
            indirection: Either the name of an indirection registered with [registry][(c).registry], or an
                indirection object, which is bound as is.

        Raises:
            ArgumentError: If the name does not resolve, or the object is not an indirection. The current binding is
                left unchanged.
        """
        if isinstance(indirection, str):
            resolved = cls.registry.indirections.resolve(indirection)
            if resolved is None:
                raise ArgumentError(f"Could not find indirection '{indirection}' for terminus {cls.__qualname__}")
        elif isinstance(indirection, IndirectionLike):
            resolved = indirection
        else:
            raise ArgumentError(f"{indirection!r} is neither an indirection nor the name of one")

        cls.indirection = resolved
        if cls.terminus_type is not None:
            resolved.register_terminus_type(cls.terminus_type)

    def __new__(cls, *args: Any, **kwargs: Any) -> Terminus:
        if cls.kind != BackendKind.concrete:
            raise InvalidOperationError(f"Cannot create an instance of abstract terminus type {cls.__qualname__}")
        return super().__new__(cls)

    def __repr__(self) -> str:
        return f"<{type(self).__qualname__} terminus {self.terminus_type}/{self.name}>"

    def find(self, key: str) -> Any | None:
        """Return the object stored under `key`, or None."""
        raise self._unsupported("find")

    def save(self, instance: Any) -> None:
        """Store `instance`."""
        raise self._unsupported("save")

    def search(self, query: Any) -> list[Any]:
        """Return the objects matching `query`."""
        raise self._unsupported("search")

    def destroy(self, instance: Any) -> None:
        """Remove `instance`."""
        raise self._unsupported("destroy")

    def version(self, key: str) -> Any | None:
        """Return the version of the object stored under `key`.

        The default implementation finds the object and reads its `version` attribute.

        Returns:
            Any | None: The version, or None if no object is stored under `key`.

        Raises:
            InvalidOperationError: If this terminus overrides neither `version` nor `find`.
        """
        if type(self).find is Terminus.find:
            raise InvalidOperationError(
                f"Terminus {self.terminus_type}/{self.name} has no way to determine versions: "
                "it implements neither version nor find"
            )

        found = self.find(key)
        if found is None:
            return None
        return getattr(found, "version", None)

    def fresh(self, key: str, provided_version: Any) -> bool:
        """Return whether the object under `key` is at least as recent as `provided_version`.

        An object with no version is never considered fresh.
        """
        current_version = self.version(key)
        if current_version is None:
            return False
        return bool(current_version >= provided_version)

    def _unsupported(self, operation: str) -> InvalidOperationError:
        return InvalidOperationError(f"Terminus {self.terminus_type}/{self.name} does not support {operation}")
