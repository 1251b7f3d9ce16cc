"""Backend indirection core: route logical resource types to interchangeable, runtime-selected termini."""

from __future__ import annotations

from enum import auto
from pathlib import Path

from loguru import logger
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from strenum import StrEnum

from .logging_config import LogLevel, configure_logger


class AutoloadStrategy(StrEnum):
    """How terminus classes that have not been registered yet are discovered."""

    module = auto()
    """Import `<autoload_namespace>.<terminus_type>.<terminus_name>` as a python module."""
    entry_point = auto()
    """Load the entry point `<terminus_name>` from the group `<entry_point_group>.<terminus_type>`."""


class IndirectorSettings(BaseSettings):
    """Settings for the indirector package."""

    model_config = SettingsConfigDict(
        env_prefix="INDIRECTOR_",
        env_nested_delimiter="__",
        use_attribute_docstrings=True,
    )

    autoload_strategy: AutoloadStrategy = AutoloadStrategy.module
    """The discovery mechanism used when a terminus class is requested but not registered."""

    autoload_namespace: str = "indirector.termini"
    """The package under which terminus modules are looked up, one subpackage per terminus type."""

    entry_point_group: str = "indirector.termini"
    """The entry point group prefix used by the `entry_point` strategy. The terminus type is appended."""

    terminus_classes: dict[str, str] = Field(default_factory=dict)
    """Maps an indirection name to the name of the terminus that serves it, e.g. `{"certificate": "rest"}`."""

    cache_classes: dict[str, str] = Field(default_factory=dict)
    """Maps an indirection name to the name of a terminus used as its cache."""

    store_path: Path = Path(".indirector")
    """Root directory for `JsonFileStore` termini that are not given a path explicitly."""

    log_level: LogLevel | None = None
    """If set, the package logger is configured with this level on import."""

    @model_validator(mode="after")
    def check_cache_differs_from_terminus(self) -> IndirectorSettings:
        """Warn about indirections configured to cache into their own terminus."""
        for indirection_name, cache_class in self.cache_classes.items():
            if self.terminus_classes.get(indirection_name) == cache_class:
                logger.warning(
                    f"Indirection '{indirection_name}' uses '{cache_class}' as both its terminus and its cache. "
                    "Every find will be considered fresh."
                )
        return self


indirector_settings: IndirectorSettings = IndirectorSettings()

if indirector_settings.log_level is not None:
    configure_logger(indirector_settings.log_level)

if indirector_settings.terminus_classes:
    logger.debug(f"Configured terminus classes: {indirector_settings.terminus_classes}")


from .errors import (  # noqa: E402
    ArgumentError,
    ConfigurationError,
    IndirectorError,
    InvalidOperationError,
    TerminusLookupError,
)
from .naming import canonicalize  # noqa: E402
from .indirection import Indirection, IndirectionLike  # noqa: E402, I001
from .directory import IndirectionDirectory  # noqa: E402
from .autoload import Autoloader, EntryPointAutoloader, ModuleAutoloader, default_autoloader_factory  # noqa: E402
from .registry import BackendKind, Registry, TerminusClassDescriptor, default_registry  # noqa: E402
from .terminus import Terminus  # noqa: E402

__all__ = [
    "ArgumentError",
    "AutoloadStrategy",
    "Autoloader",
    "BackendKind",
    "ConfigurationError",
    "EntryPointAutoloader",
    "Indirection",
    "IndirectionDirectory",
    "IndirectionLike",
    "IndirectorError",
    "IndirectorSettings",
    "InvalidOperationError",
    "ModuleAutoloader",
    "Registry",
    "Terminus",
    "TerminusClassDescriptor",
    "TerminusLookupError",
    "canonicalize",
    "default_autoloader_factory",
    "default_registry",
    "indirector_settings",
]
