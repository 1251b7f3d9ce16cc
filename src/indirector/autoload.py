"""Autoloaders find and load terminus classes that have not been registered yet.

Loading a terminus module (or entry point) defines its class, and defining a terminus class registers it. An
autoloader therefore only has to get the code executed; the registry re-checks afterwards.

The mapping from a terminus type to the place its termini live is a policy: a callable taking the terminus type and
returning an [Autoloader][^^.Autoloader]. [default_autoloader_factory()][^^.default_autoloader_factory] builds that
policy from `IndirectorSettings`.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from importlib.metadata import entry_points
from typing import Protocol, runtime_checkable

from loguru import logger

from indirector import AutoloadStrategy, IndirectorSettings, indirector_settings


@runtime_checkable
class Autoloader(Protocol):
    """Loads the code defining a terminus, given its name."""

    def load(self, terminus_name: str) -> bool:
        """Attempt to load the terminus named `terminus_name`.

        Returns:
            bool: True if code was found and executed, False if nothing by that name exists.
        """
        ...


AutoloaderFactory = Callable[[str], Autoloader]
"""Builds the autoloader responsible for one terminus type."""


class ModuleAutoloader:
    """Imports terminus modules from a package, one module per terminus name."""

    def __init__(self, namespace: str) -> None:
        """Create an autoloader for modules under `namespace`, e.g. `indirector.termini.certificate`."""
        self.namespace = namespace

    def __repr__(self) -> str:
        return f"ModuleAutoloader(namespace={self.namespace!r})"

    def load(self, terminus_name: str) -> bool:
        """Import `<namespace>.<terminus_name>`.

        Only a missing module (or missing parent package) is reported as False. Any error raised while the module
        itself executes propagates to the caller.
        """
        module_name = f"{self.namespace}.{terminus_name}"
        logger.debug(f"Autoloading terminus module {module_name}")
        try:
            importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            if e.name is None or not (module_name == e.name or module_name.startswith(f"{e.name}.")):
                raise
            logger.debug(f"No terminus module {module_name}: {e}")
            return False

        return True


class EntryPointAutoloader:
    """Loads terminus classes advertised as package entry points."""

    def __init__(self, group: str) -> None:
        """Create an autoloader for the entry point `group`, e.g. `indirector.termini.certificate`."""
        self.group = group

    def __repr__(self) -> str:
        return f"EntryPointAutoloader(group={self.group!r})"

    def load(self, terminus_name: str) -> bool:
        """Load the entry point named `terminus_name` in the group, if one is installed."""
        matches = entry_points(group=self.group, name=terminus_name)
        if not matches:
            logger.debug(f"No entry point '{terminus_name}' in group {self.group}")
            return False

        for entry_point in matches:
            logger.debug(f"Loading terminus entry point {entry_point.value}")
            entry_point.load()

        return True


def default_autoloader_factory(settings: IndirectorSettings | None = None) -> AutoloaderFactory:
    """Build the discovery policy described by `settings`.

    Args:
        settings: The settings to read. Defaults to the package settings.

    Returns:
        AutoloaderFactory: A callable mapping a terminus type to its autoloader.
    """
    settings = settings or indirector_settings

    def _factory(terminus_type: str) -> Autoloader:
        if settings.autoload_strategy == AutoloadStrategy.entry_point:
            return EntryPointAutoloader(f"{settings.entry_point_group}.{terminus_type}")
        return ModuleAutoloader(f"{settings.autoload_namespace}.{terminus_type}")

    return _factory
