"""ListController — the interactive KML list next to the map.

One row per registry entry: color stripe, visibility toggle, decoded key,
full file name, delete icon. Rows are kept in a lookup table keyed by file
name, so entries never hold a reference to their row.

Selection follows three click rules:
  - plain click: selection becomes exactly this row
  - toggle click (ctrl/cmd): this row's membership flips, others untouched
  - range click (shift): selection becomes the contiguous display range
    between the anchor row and this row; without a prior selection it acts
    like a plain click

Selected rows get an emphasized shadow (opacity 1.0, double shadow
weight); unselected rows revert to opacity 0.5 and the plain shadow weight.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from mapper.errors import InvalidColorError
from mapper.layers.converter import SELECTED_SHADOW_OPACITY, SHADOW_OPACITY
from mapper.layers.layer import LayerEntry
from mapper.layers.map_surface import Decoration, MapSurface
from mapper.layers.registry import LayerRegistry
from mapper.viewer import events as ev
from mapper.viewer.events import EventDispatcher
from mapper.viewer.filenames import extract_key, sort_key
from mapper.viewer.notifications import Messages, NotificationPresenter

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

MIN_LINE_WEIGHT = 1
MAX_LINE_WEIGHT = 10

HIGHLIGHT_STYLE = {"color": "#000000", "weight": 10, "opacity": 0.5, "fill": False, "interactive": False}


class ClickModifier(str, Enum):
    NONE = "none"
    TOGGLE = "toggle"  # ctrl / cmd
    RANGE = "range"    # shift


class MenuAction(str, Enum):
    ZOOM = "zoom"
    COLOR = "color"
    VISIBILITY = "visibility"
    DELETE = "delete"


@dataclass
class ListRow:
    name: str
    key: str
    color: str
    visible: bool = True
    selected: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "key": self.key,
            "color": self.color,
            "visible": self.visible,
            "selected": self.selected,
        }


@dataclass
class MenuItem:
    action: MenuAction
    label: str
    icon: str

    def to_dict(self) -> dict:
        return {"action": self.action.value, "label": self.label, "icon": self.icon}


@dataclass
class Highlight:
    """Hover highlight: outline over the overlay extent plus a label."""

    name: str
    outline: Decoration
    label: Decoration


def validate_color(color: str) -> str:
    if not isinstance(color, str) or not _HEX_COLOR.match(color):
        raise InvalidColorError(f"Invalid color: {color!r} (expected #rrggbb)")
    return color.lower()


class ListController:
    """Renders registry entries as rows and runs the selection state machine."""

    def __init__(
        self,
        registry: LayerRegistry,
        map_surface: MapSurface,
        events: EventDispatcher,
        notifier: NotificationPresenter,
        shadow_weight: float = 6,
    ) -> None:
        self._registry = registry
        self._map = map_surface
        self._events = events
        self._notifier = notifier
        self.shadow_weight = shadow_weight
        self._rows: dict[str, ListRow] = {}
        self._order: list[str] = []
        self._highlights: dict[str, Highlight] = {}

    @property
    def selection(self):
        return self._registry.selection

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def rows(self) -> list[ListRow]:
        """Rows in display order."""
        return [self._rows[name] for name in self._order]

    def display_order(self) -> list[str]:
        return list(self._order)

    def row(self, name: str) -> ListRow:
        row = self._rows.get(name)
        if row is None:
            raise KeyError(f"No list row for {name}")
        return row

    def insert_row(self, entry: LayerEntry) -> ListRow:
        """Create the row for a freshly registered entry and resort."""
        row = ListRow(
            name=entry.name,
            key=extract_key(entry.name),
            color=entry.color,
            visible=entry.visible,
        )
        self._rows[entry.name] = row
        self._order.append(entry.name)
        self._events.emit(ev.ROW_ADDED, row=row.to_dict())
        self.resort()
        return row

    def resort(self) -> None:
        """Order rows ascending by decoded key (file name breaks ties)."""
        order = sorted(self._rows, key=sort_key)
        if order != self._order:
            self._order = order
            self._events.emit(ev.ROWS_REORDERED, order=list(order))

    def flush(self) -> None:
        """Drop every row and highlight (project switch)."""
        for name in list(self._highlights):
            self.hover_leave(name)
        self._rows.clear()
        self._order.clear()
        self._events.emit(ev.ROWS_CLEARED)

    def describe(self, name: str) -> dict:
        """Row debug info (double click)."""
        row = self.row(name)
        entry = self._registry.get(name)
        info = {
            "name": row.name,
            "number": row.key,
            "color": entry.color,
            "visible": entry.visible,
            "selected": row.selected,
        }
        logger.debug(f"Row details: {info}")
        return info

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def click(self, name: str, modifier: ClickModifier = ClickModifier.NONE) -> list[str]:
        """Apply one click to the selection.

        Returns:
            Selected names in display order.
        """
        self.row(name)
        selection = self.selection
        anchor = self._range_anchor() if modifier == ClickModifier.RANGE else None

        if modifier == ClickModifier.TOGGLE:
            if name in selection:
                selection.discard(name)
            else:
                selection.add(name)
                selection.anchor = name
        elif anchor is not None:
            start, end = sorted((self._order.index(anchor), self._order.index(name)))
            selection.replace(self._order[start:end + 1])
            selection.anchor = anchor
        else:
            selection.replace([name])
            selection.anchor = name

        self._sync_selection()
        return self.selected_names()

    def select_all(self, selected: bool = True) -> list[str]:
        if selected:
            self.selection.replace(self._order)
        else:
            self.selection.clear()
        self._sync_selection()
        return self.selected_names()

    def selected_names(self) -> list[str]:
        return [name for name in self._order if name in self.selection]

    def _range_anchor(self) -> str | None:
        selection = self.selection
        if selection.anchor is not None and selection.anchor in selection and selection.anchor in self._rows:
            return selection.anchor
        for name in self._order:
            if name in selection:
                return name
        return None

    def _sync_selection(self) -> None:
        """Bring row flags and shadow styles in line with the selection set."""
        for name in self._order:
            row = self._rows[name]
            row.selected = name in self.selection
            entry = self._registry.find_by_name(name)
            if entry is not None:
                self._apply_shadow_style(entry, row.selected)
        self._events.emit(ev.SELECTION_CHANGED, selected=self.selected_names())

    def _apply_shadow_style(self, entry: LayerEntry, selected: bool) -> None:
        if selected:
            entry.shadow.set_style(opacity=SELECTED_SHADOW_OPACITY, weight=self.shadow_weight * 2)
        else:
            entry.shadow.set_style(opacity=SHADOW_OPACITY, weight=self.shadow_weight)

    # ------------------------------------------------------------------
    # Row actions
    # ------------------------------------------------------------------

    def toggle_visibility(self, name: str) -> bool:
        """Show or hide both overlays; returns the new visibility."""
        row = self.row(name)
        row.visible = self._registry.toggle_visibility(name)
        self._events.emit(ev.ROW_CHANGED, row=row.to_dict())
        return row.visible

    def delete(self, name: str) -> bool:
        """Remove the entry, its row, its highlight and its selection membership."""
        if name not in self._rows:
            return False
        self.hover_leave(name)
        self._registry.remove(name)
        del self._rows[name]
        self._order.remove(name)
        self._events.emit(ev.ROW_REMOVED, name=name)
        self._events.emit(ev.SELECTION_CHANGED, selected=self.selected_names())
        logger.info(f"Layer deleted: {name}")
        return True

    def set_color(self, name: str, color: str) -> str:
        """Recolor one entry's main line and its stripe."""
        color = validate_color(color)
        row = self.row(name)
        entry = self._registry.get(name)
        entry.main.set_style(color=color)
        entry.color = color
        row.color = color
        self._events.emit(ev.ROW_CHANGED, row=row.to_dict())
        return color

    def recolor_selection(self, color: str) -> list[str]:
        """Palette click: recolor every selected entry."""
        color = validate_color(color)
        names = self.selected_names()
        if not names:
            self._notifier.warning(Messages.NOTHING_SELECTED)
            return []
        for name in names:
            self.set_color(name, color)
        return names

    def set_line_weight(self, weight: int) -> float:
        """Change the main weight of every entry; shadows follow at 2x."""
        if not MIN_LINE_WEIGHT <= weight <= MAX_LINE_WEIGHT:
            raise ValueError(f"Line weight must be between {MIN_LINE_WEIGHT} and {MAX_LINE_WEIGHT}")
        self.shadow_weight = weight * 2
        for entry in self._registry:
            entry.main.set_style(weight=weight)
            self._apply_shadow_style(entry, entry.name in self.selection)
        logger.info(f"Line weight set to {weight}")
        return weight

    def zoom_to(self, name: str) -> bool:
        entry = self._registry.get(name)
        bounds = entry.bounds
        if bounds is None:
            return False
        self._map.fit_bounds(bounds)
        self._events.emit(ev.MAP_FITTED, name=name, bounds=bounds.to_list())
        return True

    # ------------------------------------------------------------------
    # Hover
    # ------------------------------------------------------------------

    def hover_enter(self, name: str) -> Highlight | None:
        """Outline the overlay extent and label it with the decoded key."""
        self.hover_leave(name)
        row = self.row(name)
        bounds = self._registry.get(name).bounds
        if bounds is None:
            return None
        outline = self._map.add_decoration(
            Decoration(kind="rectangle", bounds=bounds, style=dict(HIGHLIGHT_STYLE))
        )
        label = self._map.add_decoration(
            Decoration(kind="label", position=bounds.top_center, text=f"KML {row.key}")
        )
        highlight = Highlight(name=name, outline=outline, label=label)
        self._highlights[name] = highlight
        self._events.emit(
            ev.HIGHLIGHT_SHOWN, name=name, outline=outline.to_dict(), label=label.to_dict()
        )
        return highlight

    def hover_leave(self, name: str) -> bool:
        highlight = self._highlights.pop(name, None)
        if highlight is None:
            return False
        self._map.remove_decoration(highlight.outline)
        self._map.remove_decoration(highlight.label)
        self._events.emit(ev.HIGHLIGHT_HIDDEN, name=name)
        return True

    # ------------------------------------------------------------------
    # Context menu
    # ------------------------------------------------------------------

    def context_menu(self, name: str) -> list[MenuItem]:
        row = self.row(name)
        return [
            MenuItem(MenuAction.ZOOM, "Zoom to KML extent", "fa-search"),
            MenuItem(MenuAction.COLOR, "Change color", "fa-palette"),
            MenuItem(
                MenuAction.VISIBILITY,
                "Hide layer" if row.visible else "Show layer",
                "fa-eye-slash" if row.visible else "fa-eye",
            ),
            MenuItem(MenuAction.DELETE, "Delete layer", "fa-trash"),
        ]

    def run_menu_action(self, name: str, action: MenuAction | str, color: str | None = None):
        """Dispatch a context menu choice."""
        action = MenuAction(action)
        if action == MenuAction.ZOOM:
            return self.zoom_to(name)
        if action == MenuAction.COLOR:
            if color is None:
                raise InvalidColorError("Change color needs a color")
            return self.set_color(name, color)
        if action == MenuAction.VISIBILITY:
            return self.toggle_visibility(name)
        return self.delete(name)
