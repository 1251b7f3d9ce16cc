"""Tests for the indirection directory and dispatching requests through an indirection."""

from __future__ import annotations

from datetime import datetime

import pytest
from pydantic import BaseModel, ConfigDict

from indirector import (
    ConfigurationError,
    Indirection,
    IndirectionDirectory,
    IndirectionLike,
    Registry,
    Terminus,
    TerminusLookupError,
    indirector_settings,
)
from indirector.backends import MemoryStore


class Widget(BaseModel):
    name: str
    colour: str = "grey"
    version: int | None = None


class Note(BaseModel):
    name: str
    version: datetime | None = None


class FrozenNote(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    version: datetime | None = None


class TestIndirectionDirectory:
    def test_register_and_resolve(self) -> None:
        directory = IndirectionDirectory()
        indirection = Indirection("widget", Widget, registry=Registry())

        directory.register(indirection)

        assert directory.resolve("widget") is indirection
        assert directory.resolve("gadget") is None
        assert "widget" in directory
        assert len(directory) == 1

    def test_register_same_indirection_twice(self) -> None:
        directory = IndirectionDirectory()
        indirection = Indirection("widget", Widget, registry=Registry())

        directory.register(indirection)
        directory.register(indirection)

        assert directory.names() == ["widget"]

    def test_names_are_unique(self, registry: Registry) -> None:
        Indirection("widget", Widget, registry=registry)

        with pytest.raises(ConfigurationError, match="already defined"):
            Indirection("widget", Note, registry=registry)

        resolved = registry.indirections.resolve("widget")
        assert resolved is not None
        assert resolved.model is Widget

    def test_clear(self, registry: Registry) -> None:
        Indirection("widget", Widget, registry=registry)

        registry.indirections.clear()

        assert registry.indirections.names() == []


class TestIndirection:
    def test_registers_itself(self, registry: Registry) -> None:
        indirection = Indirection("widget", Widget, registry=registry, doc="Things with colours.")

        assert registry.indirections.resolve("widget") is indirection
        assert indirection.registry is registry
        assert indirection.name == "widget"
        assert indirection.model is Widget
        assert indirection.doc == "Things with colours."
        assert isinstance(indirection, IndirectionLike)

    def test_known_terminus_types_only_grow(self, registry: Registry) -> None:
        indirection = Indirection("widget", Widget, registry=registry)

        indirection.register_terminus_type("widget")
        indirection.register_terminus_type("legacy_widget")
        indirection.register_terminus_type("widget")

        assert indirection.known_terminus_types == {"widget", "legacy_widget"}

    def test_terminus_requires_configuration(self, registry: Registry) -> None:
        indirection = Indirection("widget", Widget, registry=registry)

        with pytest.raises(ConfigurationError, match="No terminus class"):
            indirection.terminus()

    def test_cache_is_optional(self, registry: Registry) -> None:
        indirection = Indirection("widget", Widget, registry=registry)

        assert indirection.cache_class is None
        assert indirection.cache() is None


@pytest.fixture
def widgets(registry: Registry) -> Indirection:
    """Return a `widget` indirection served by a `memory` terminus and cached by a `cache` terminus."""
    indirection = Indirection("widget", Widget, registry=registry)

    class WidgetTerminus(Terminus, indirection="widget", registry=registry):
        pass

    class MemoryWidget(MemoryStore, WidgetTerminus, name="memory"):
        pass

    class CacheWidget(MemoryStore, WidgetTerminus, name="cache"):
        pass

    return indirection


class TestTerminusSelection:
    def test_terminus_class_from_settings(self, widgets: Indirection, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(indirector_settings, "terminus_classes", {"widget": "memory"})
        monkeypatch.setattr(indirector_settings, "cache_classes", {"widget": "cache"})

        assert widgets.terminus_class == "memory"
        assert widgets.cache_class == "cache"
        assert widgets.terminus().name == "memory"

    def test_explicit_terminus_class_overrides_settings(
        self,
        widgets: Indirection,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(indirector_settings, "terminus_classes", {"widget": "cache"})

        widgets.terminus_class = "memory"

        assert widgets.terminus_class == "memory"

    def test_unknown_terminus_class_is_rejected(self, widgets: Indirection) -> None:
        widgets.terminus_class = "memory"

        with pytest.raises(TerminusLookupError):
            widgets.terminus_class = "nonexistent"

        assert widgets.terminus_class == "memory"

    def test_each_operation_gets_a_new_terminus(self, widgets: Indirection) -> None:
        assert widgets.terminus("memory") is not widgets.terminus("memory")

    def test_cache_class_can_be_disabled(self, widgets: Indirection) -> None:
        widgets.cache_class = "cache"
        widgets.cache_class = None

        assert widgets.cache() is None


class TestDispatch:
    @pytest.fixture(autouse=True)
    def _configure(self, widgets: Indirection) -> None:
        widgets.terminus_class = "memory"

    def test_save_find_destroy(self, widgets: Indirection) -> None:
        widget = Widget(name="sprocket", version=1)

        widgets.save(widget)
        assert widgets.find("sprocket") is widget

        widgets.destroy(widget)
        assert widgets.find("sprocket") is None

    def test_search(self, widgets: Indirection) -> None:
        widgets.save(Widget(name="red_one", colour="red", version=1))
        widgets.save(Widget(name="blue_one", colour="blue", version=1))

        assert [widget.name for widget in widgets.search("red_*")] == ["red_one"]
        assert len(widgets.search(None)) == 2

    def test_found_instance_without_version_is_stamped(self, registry: Registry) -> None:
        notes = Indirection("note", Note, registry=registry)

        class NoteTerminus(Terminus, indirection="note", registry=registry):
            pass

        class MemoryNote(MemoryStore, NoteTerminus, name="memory"):
            pass

        notes.terminus_class = "memory"
        stored = Note(name="todo")
        notes.save(stored)

        found = notes.find("todo")

        assert found is not None
        assert isinstance(found.version, datetime)
        assert found.version.tzinfo is not None
        assert stored.version is None
        assert MemoryNote().find("todo") is stored

    @pytest.mark.parametrize("cache_class", [None, "cache"])
    def test_frozen_instances_are_stamped_as_copies(self, registry: Registry, cache_class: str | None) -> None:
        notes = Indirection("frozen_note", FrozenNote, registry=registry)

        class FrozenNoteTerminus(Terminus, indirection="frozen_note", registry=registry):
            pass

        class MemoryFrozenNote(MemoryStore, FrozenNoteTerminus, name="memory"):
            pass

        class CacheFrozenNote(MemoryStore, FrozenNoteTerminus, name="cache"):
            pass

        notes.terminus_class = "memory"
        notes.cache_class = cache_class
        stored = FrozenNote(name="todo")
        notes.save(stored)

        found = notes.find("todo")

        assert found is not None
        assert found is not stored
        assert isinstance(found.version, datetime)
        assert stored.version is None
        assert MemoryFrozenNote().find("todo") is stored


class TestCaching:
    @pytest.fixture(autouse=True)
    def _configure(self, widgets: Indirection) -> None:
        widgets.terminus_class = "memory"
        widgets.cache_class = "cache"

    def test_save_writes_through_to_cache(self, widgets: Indirection) -> None:
        widget = Widget(name="sprocket", version=1)

        widgets.save(widget)

        assert widgets.terminus("memory").find("sprocket") is widget
        assert widgets.terminus("cache").find("sprocket") is widget

    def test_fresh_cache_is_used(self, widgets: Indirection) -> None:
        authoritative = Widget(name="sprocket", version=2)
        cached = Widget(name="sprocket", version=2)
        widgets.terminus("memory").save(authoritative)
        widgets.terminus("cache").save(cached)

        assert widgets.find("sprocket") is cached

    def test_stale_cache_is_refreshed(self, widgets: Indirection) -> None:
        authoritative = Widget(name="sprocket", colour="red", version=3)
        widgets.terminus("memory").save(authoritative)
        widgets.terminus("cache").save(Widget(name="sprocket", colour="grey", version=2))

        found = widgets.find("sprocket")

        assert found is authoritative
        assert widgets.terminus("cache").find("sprocket") is authoritative

    def test_missing_instance_is_not_cached(self, widgets: Indirection) -> None:
        assert widgets.find("sprocket") is None
        assert widgets.terminus("cache").search(None) == []

    def test_destroy_removes_from_cache(self, widgets: Indirection) -> None:
        widget = Widget(name="sprocket", version=1)
        widgets.save(widget)

        widgets.destroy(widget)

        assert widgets.terminus("memory").find("sprocket") is None
        assert widgets.terminus("cache").find("sprocket") is None

    def test_search_ignores_cache(self, widgets: Indirection) -> None:
        widgets.terminus("cache").save(Widget(name="ghost", version=1))

        assert widgets.search(None) == []
