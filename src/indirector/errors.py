"""Exceptions raised by the indirection core.

All of these describe programmer or configuration mistakes and are raised at the point of misuse.
"""

from __future__ import annotations


class IndirectorError(Exception):
    """Base class for every error raised by the indirector package."""


class ConfigurationError(IndirectorError):
    """A terminus or indirection is wired up inconsistently.

    Raised when an abstract terminus type has no matching indirection, when a concrete terminus has no bound
    indirection, when an indirection name is defined twice, or when no terminus class is configured.
    """


class ArgumentError(IndirectorError, ValueError):
    """An indirection could not be bound to a terminus class. The previous binding is left in place."""


class TerminusLookupError(IndirectorError, LookupError):
    """No terminus class is registered under the requested type and name, even after autoloading."""


class InvalidOperationError(IndirectorError):
    """An operation was invoked that the target cannot perform.

    This covers instantiating an abstract terminus type and calling an operation a terminus does not implement.
    """


__all__ = [
    "ArgumentError",
    "ConfigurationError",
    "IndirectorError",
    "InvalidOperationError",
    "TerminusLookupError",
]
