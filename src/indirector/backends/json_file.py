"""Filesystem terminus storage: one JSON document per key."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, ClassVar

from loguru import logger
from pydantic import BaseModel

from indirector import indirector_settings


class JsonFileStore:
    """Mixin storing pydantic model instances as `<base_path>/<terminus_type>/<key>.json`.

    The indirection's model must be a pydantic model. Versions are the UTC modification time of the file, so asking
    whether a copy is fresh never parses the document.

    `base_path` is taken, in order, from the constructor, the class attribute and `IndirectorSettings.store_path`.
    """

    base_path: ClassVar[Path | None] = None

    terminus_type: ClassVar[str | None]
    model: Any

    def __init__(self, base_path: str | Path | None = None) -> None:
        root = Path(base_path or type(self).base_path or indirector_settings.store_path)
        self.directory = root / str(self.terminus_type)

    @staticmethod
    def _check_confined(pattern: str) -> None:
        if not pattern or "/" in pattern or "\\" in pattern or pattern.startswith("."):
            raise ValueError(f"'{pattern}' would address files outside the store")

    def path_for(self, key: str) -> Path:
        """Return the file backing `key`.

        Raises:
            ValueError: If `key` would address a file outside the store.
        """
        self._check_confined(key)
        return self.directory / f"{key}.json"

    def find(self, key: str) -> BaseModel | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return self.model.model_validate_json(path.read_text(encoding="utf-8"))

    def save(self, instance: BaseModel) -> None:
        path = self.path_for(str(getattr(instance, "name")))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(instance.model_dump_json(indent=4), encoding="utf-8")
        logger.debug(f"Wrote {path}")

    def search(self, query: Any) -> list[BaseModel]:
        """Return every stored object, or those whose key matches the glob pattern `query`.

        Raises:
            ValueError: If `query` would match files outside the store.
        """
        if query is not None:
            self._check_confined(str(query))
        if not self.directory.exists():
            return []
        pattern = f"{query if query is not None else '*'}.json"
        return [
            self.model.model_validate_json(path.read_text(encoding="utf-8"))
            for path in sorted(self.directory.glob(pattern))
        ]

    def destroy(self, instance: Any) -> None:
        key = instance if isinstance(instance, str) else str(instance.name)
        self.path_for(key).unlink(missing_ok=True)

    def version(self, key: str) -> datetime | None:
        """Return the modification time of the file backing `key`, or None if there is no such file."""
        path = self.path_for(key)
        if not path.exists():
            return None
        return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
