"""MapSurface — the active map the overlays are drawn on.

Tracks which overlays are attached (in attach order), temporary
decorations (hover rectangles and labels) and the current view. The web
layer serializes this state; a browser client mirrors it onto Leaflet.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from mapper.layers.layer import Bounds, Overlay


@dataclass
class Decoration:
    """A temporary, non-interactive map element.

    Attributes:
        kind: "rectangle" (outline over bounds) or "label" (text marker).
        bounds: Rectangle extent (rectangle only).
        position: (lat, lng) anchor (label only).
        text: Label text.
        style: Stroke options for rectangles.
    """

    kind: str
    bounds: Bounds | None = None
    position: tuple[float, float] | None = None
    text: str = ""
    style: dict = field(default_factory=dict)
    decoration_id: str = field(default_factory=lambda: f"deco-{uuid.uuid4().hex[:8]}")

    def to_dict(self) -> dict:
        return {
            "id": self.decoration_id,
            "kind": self.kind,
            "bounds": self.bounds.to_list() if self.bounds else None,
            "position": list(self.position) if self.position else None,
            "text": self.text,
            "style": dict(self.style),
        }


@dataclass
class MapView:
    """Current map viewport: either center/zoom or fitted bounds."""

    center: tuple[float, float]
    zoom: int
    fitted: Bounds | None = None


class MapSurface:
    """In-memory map surface."""

    def __init__(self, center: tuple[float, float] = (51.1657, 10.4515), zoom: int = 6) -> None:
        self._overlays: dict[str, Overlay] = {}
        self._decorations: dict[str, Decoration] = {}
        self.view = MapView(center=center, zoom=zoom)

    # ------------------------------------------------------------------
    # Overlays
    # ------------------------------------------------------------------

    def add_overlay(self, overlay: Overlay) -> None:
        """Attach an overlay; re-adding moves it to the top."""
        self._overlays.pop(overlay.overlay_id, None)
        self._overlays[overlay.overlay_id] = overlay

    def remove_overlay(self, overlay: Overlay) -> bool:
        return self._overlays.pop(overlay.overlay_id, None) is not None

    def has_overlay(self, overlay: Overlay) -> bool:
        return overlay.overlay_id in self._overlays

    def overlays(self) -> list[Overlay]:
        """Attached overlays, bottom to top."""
        return list(self._overlays.values())

    # ------------------------------------------------------------------
    # Decorations
    # ------------------------------------------------------------------

    def add_decoration(self, decoration: Decoration) -> Decoration:
        self._decorations[decoration.decoration_id] = decoration
        return decoration

    def remove_decoration(self, decoration: Decoration) -> bool:
        return self._decorations.pop(decoration.decoration_id, None) is not None

    def decorations(self) -> list[Decoration]:
        return list(self._decorations.values())

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------

    def fit_bounds(self, bounds: Bounds) -> None:
        self.view.center = bounds.center
        self.view.fitted = bounds

    def to_dict(self) -> dict:
        return {
            "center": list(self.view.center),
            "zoom": self.view.zoom,
            "fitted": self.view.fitted.to_list() if self.view.fitted else None,
            "overlays": [o.overlay_id for o in self._overlays.values()],
            "decorations": [d.to_dict() for d in self._decorations.values()],
        }
