"""Terminus plugins loaded by the autoloader tests.

Plugin modules subclass the abstract terminus types of `active_registry`, which the tests point at their own
registry before triggering an autoload.
"""

from indirector import Registry, Terminus

active_registry: Registry | None = None


def abstract_terminus(terminus_type: str) -> type[Terminus]:
    """Return the abstract terminus type `terminus_type` of the active registry."""
    assert active_registry is not None, "fixture_termini.active_registry must be set before autoloading"
    descriptor = active_registry.abstract_terminus(terminus_type)
    assert descriptor is not None, f"no abstract terminus type {terminus_type} in the active registry"
    return descriptor.terminus_class
