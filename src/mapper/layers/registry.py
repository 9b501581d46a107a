"""LayerRegistry — ordered registry of ingested KML layers.

Manages the lifecycle of LayerEntry objects: add, remove, find, list,
visibility control and the full flush used on project switch. Every
operation that touches both the registry and the map runs synchronously,
so both overlays of an entry are always attached or detached together.
"""

from __future__ import annotations

from loguru import logger

from mapper.errors import DuplicateNameError
from mapper.layers.layer import LayerEntry
from mapper.layers.map_surface import MapSurface
from mapper.layers.selection import SelectionSet


class LayerRegistry:
    """Registry of active KML layers, unique by file name."""

    def __init__(self, map_surface: MapSurface, selection: SelectionSet | None = None) -> None:
        self._map = map_surface
        self.selection = selection if selection is not None else SelectionSet()
        self._entries: dict[str, LayerEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __iter__(self):
        return iter(list(self._entries.values()))

    def add(self, entry: LayerEntry) -> LayerEntry:
        """Register an entry.

        Args:
            entry: The LayerEntry to register. Its overlays are expected to
                be attached already when ``entry.visible`` is True.

        Returns:
            The registered entry.

        Raises:
            DuplicateNameError: If an entry with the same name exists.
        """
        if entry.name in self._entries:
            raise DuplicateNameError(f"Layer already loaded: {entry.name}")
        self._entries[entry.name] = entry
        logger.debug(f"Registry: added {entry.name} ({len(self._entries)} layers)")
        return entry

    def remove(self, entry: LayerEntry | str) -> bool:
        """Detach both overlays, drop the entry and its selection membership.

        Args:
            entry: The entry or its name.

        Returns:
            True if the entry was removed, False if it didn't exist.
        """
        name = entry if isinstance(entry, str) else entry.name
        found = self._entries.pop(name, None)
        if found is None:
            return False
        for overlay in found.overlays:
            self._map.remove_overlay(overlay)
        self.selection.discard(name)
        logger.debug(f"Registry: removed {name}")
        return True

    def clear(self) -> int:
        """Detach every overlay and empty the registry and selection.

        Returns:
            Number of entries removed.
        """
        count = len(self._entries)
        for entry in self._entries.values():
            for overlay in entry.overlays:
                self._map.remove_overlay(overlay)
        self._entries.clear()
        self.selection.clear()
        if count:
            logger.info(f"Registry: cleared {count} layers")
        return count

    def find_by_name(self, name: str) -> LayerEntry | None:
        return self._entries.get(name)

    def get(self, name: str) -> LayerEntry:
        """Like find_by_name but raises KeyError for unknown names."""
        entry = self._entries.get(name)
        if entry is None:
            raise KeyError(f"Layer not found: {name}")
        return entry

    def entries(self) -> list[LayerEntry]:
        """All entries in insertion order."""
        return list(self._entries.values())

    def names(self) -> list[str]:
        return list(self._entries)

    def set_visibility(self, name: str, visible: bool) -> LayerEntry:
        """Attach or detach both overlays of an entry.

        Raises:
            KeyError: If the name is not registered.
        """
        entry = self.get(name)
        if visible:
            # shadow first so the main line stays on top
            self._map.add_overlay(entry.shadow)
            self._map.add_overlay(entry.main)
        else:
            self._map.remove_overlay(entry.main)
            self._map.remove_overlay(entry.shadow)
        entry.visible = visible
        return entry

    def toggle_visibility(self, name: str) -> bool:
        """Flip visibility; returns the new state."""
        entry = self.get(name)
        self.set_visibility(name, not entry.visible)
        return entry.visible
