import indirector_nonexistent_dependency  # noqa: F401
