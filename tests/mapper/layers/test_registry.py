"""Tests for LayerRegistry — uniqueness, paired attach/detach, flush."""

import pytest

from mapper.errors import DuplicateNameError
from mapper.layers.converter import KmlConverter
from mapper.layers.layer import Bounds, LayerEntry
from mapper.layers.map_surface import Decoration, MapSurface
from mapper.layers.registry import LayerRegistry
from mapper.layers.selection import SelectionSet


@pytest.fixture
def surface():
    return MapSurface()


@pytest.fixture
def registry(surface):
    return LayerRegistry(surface)


def _entry(surface, make_kml, name="A_01_KML_Export.kml"):
    pair = KmlConverter(surface).convert(make_kml())
    return LayerEntry(name=name, main=pair.main, shadow=pair.shadow)


@pytest.mark.unit
class TestRegistryBasics:
    """Add, find, list."""

    def test_add_and_find(self, surface, registry, make_kml):
        entry = registry.add(_entry(surface, make_kml))
        assert len(registry) == 1
        assert "A_01_KML_Export.kml" in registry
        assert registry.find_by_name("A_01_KML_Export.kml") is entry
        assert registry.get("A_01_KML_Export.kml") is entry

    def test_find_missing(self, registry):
        assert registry.find_by_name("nope.kml") is None
        with pytest.raises(KeyError):
            registry.get("nope.kml")

    def test_duplicate_name_rejected(self, surface, registry, make_kml):
        registry.add(_entry(surface, make_kml))
        with pytest.raises(DuplicateNameError):
            registry.add(_entry(surface, make_kml))
        assert len(registry) == 1

    def test_entries_in_insertion_order(self, surface, registry, make_kml):
        registry.add(_entry(surface, make_kml, "b.kml"))
        registry.add(_entry(surface, make_kml, "a.kml"))
        assert registry.names() == ["b.kml", "a.kml"]
        assert [e.name for e in registry] == ["b.kml", "a.kml"]


@pytest.mark.unit
class TestRegistryRemoval:
    """Both overlays leave the map together."""

    def test_remove_detaches_both_overlays(self, surface, registry, make_kml):
        entry = registry.add(_entry(surface, make_kml))
        assert registry.remove(entry) is True
        assert not surface.has_overlay(entry.main)
        assert not surface.has_overlay(entry.shadow)
        assert len(registry) == 0

    def test_remove_by_name_drops_selection(self, surface, make_kml):
        selection = SelectionSet()
        registry = LayerRegistry(surface, selection)
        registry.add(_entry(surface, make_kml))
        selection.add("A_01_KML_Export.kml")
        registry.remove("A_01_KML_Export.kml")
        assert "A_01_KML_Export.kml" not in selection

    def test_remove_unknown_returns_false(self, registry):
        assert registry.remove("ghost.kml") is False

    def test_clear(self, surface, registry, make_kml):
        registry.add(_entry(surface, make_kml, "a.kml"))
        registry.add(_entry(surface, make_kml, "b.kml"))
        registry.selection.add("a.kml")
        assert registry.clear() == 2
        assert len(registry) == 0
        assert surface.overlays() == []
        assert len(registry.selection) == 0


@pytest.mark.unit
class TestRegistryVisibility:
    """Hide and show attach or detach the pair."""

    def test_hide_and_show(self, surface, registry, make_kml):
        entry = registry.add(_entry(surface, make_kml))
        registry.set_visibility(entry.name, False)
        assert entry.visible is False
        assert surface.overlays() == []
        registry.set_visibility(entry.name, True)
        assert surface.overlays() == [entry.shadow, entry.main]

    def test_toggle_returns_new_state(self, surface, registry, make_kml):
        entry = registry.add(_entry(surface, make_kml))
        assert registry.toggle_visibility(entry.name) is False
        assert registry.toggle_visibility(entry.name) is True

    def test_toggle_unknown_raises(self, registry):
        with pytest.raises(KeyError):
            registry.toggle_visibility("ghost.kml")


@pytest.mark.unit
class TestMapSurface:
    """Overlay order, decorations and the view."""

    def test_re_adding_moves_overlay_to_top(self, surface, make_kml):
        entry = _entry(surface, make_kml)
        surface.add_overlay(entry.shadow)
        assert surface.overlays() == [entry.main, entry.shadow]

    def test_decorations(self, surface):
        deco = surface.add_decoration(Decoration(kind="label", position=(51.0, 10.0), text="KML 01"))
        assert surface.decorations() == [deco]
        assert surface.remove_decoration(deco) is True
        assert surface.remove_decoration(deco) is False

    def test_fit_bounds(self, surface):
        bounds = Bounds(south=50.0, west=9.0, north=52.0, east=11.0)
        surface.fit_bounds(bounds)
        data = surface.to_dict()
        assert data["center"] == [51.0, 10.0]
        assert data["fitted"] == [50.0, 9.0, 52.0, 11.0]

    def test_default_view_is_germany(self, surface):
        assert surface.to_dict()["center"] == [51.1657, 10.4515]
        assert surface.to_dict()["zoom"] == 6


@pytest.mark.unit
class TestSelectionSet:
    """Membership and anchor bookkeeping."""

    def test_discard_clears_anchor(self):
        selection = SelectionSet()
        selection.add("a.kml")
        selection.anchor = "a.kml"
        selection.discard("a.kml")
        assert selection.anchor is None

    def test_replace_keeps_anchor_inside(self):
        selection = SelectionSet()
        selection.anchor = "b.kml"
        selection.replace(["a.kml", "b.kml"])
        assert selection.anchor == "b.kml"
        selection.replace(["a.kml"])
        assert selection.anchor is None
        assert list(selection) == ["a.kml"]
