import re

_NAMESPACE_PREFIX = re.compile(r"^.*(::|\.)")
_WORD_BOUNDARY = re.compile(r"([a-z])([A-Z])")


def canonicalize(identifier: str) -> str:
    """Convert a mixed-case type identifier to a lowercase, underscore separated name.

    Any namespace qualification (`::` or `.` separated) is dropped first, so `Terminus::Type::MyStuff` and
    `pkg.module.MyStuff` both become `my_stuff`.

    Args:
        identifier (str): The identifier to convert, usually a class name.

    Returns:
        str: The canonical name. Already canonical names are returned unchanged.
    """
    identifier = _NAMESPACE_PREFIX.sub("", identifier)
    return _WORD_BOUNDARY.sub(r"\1_\2", identifier).lower()
