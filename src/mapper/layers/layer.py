"""Feature, overlay and layer-entry dataclasses for the map layer system.

All coordinates are stored in GeoJSON convention: [lng, lat] or [lng, lat, alt].
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

DEFAULT_COLOR = "#ff0000"
SHADOW_COLOR = "#000000"


@dataclass
class LayerFeature:
    """A single feature (point, line, polygon) converted from a KML Placemark.

    Attributes:
        feature_id: Unique identifier within its collection.
        geometry_type: One of "Point", "LineString", "Polygon".
        coordinates: GeoJSON-style coordinate arrays.
            Point: [lng, lat, alt]
            LineString: [[lng, lat, alt], ...]
            Polygon: [[[lng, lat, alt], ...]]  (list of rings)
        properties: Placemark name, description and ExtendedData values.
        timestamp: Optional ISO8601 timestamp (first gx:Track <when>).
    """

    feature_id: str
    geometry_type: str
    coordinates: list
    properties: dict
    timestamp: str | None = None

    @property
    def is_point(self) -> bool:
        return self.geometry_type == "Point"

    def positions(self) -> list[list[float]]:
        """Flatten the geometry into a list of [lng, lat, ...] positions."""
        if self.geometry_type == "Point":
            return [self.coordinates] if self.coordinates else []
        if self.geometry_type == "LineString":
            return list(self.coordinates)
        if self.geometry_type == "Polygon":
            return [pos for ring in self.coordinates for pos in ring]
        return []


@dataclass
class FeatureCollection:
    """Generic geographic feature collection produced from one KML document."""

    name: str
    features: list[LayerFeature] = field(default_factory=list)

    def without_points(self) -> list[LayerFeature]:
        return [f for f in self.features if not f.is_point]


@dataclass(frozen=True)
class Bounds:
    """Lat/lng bounding box."""

    south: float
    west: float
    north: float
    east: float

    @classmethod
    def from_positions(cls, positions: list[list[float]]) -> Bounds | None:
        if not positions:
            return None
        lngs = [p[0] for p in positions]
        lats = [p[1] for p in positions]
        return cls(south=min(lats), west=min(lngs), north=max(lats), east=max(lngs))

    @property
    def center(self) -> tuple[float, float]:
        """(lat, lng) of the box center."""
        return ((self.south + self.north) / 2, (self.west + self.east) / 2)

    @property
    def top_center(self) -> tuple[float, float]:
        """(lat, lng) of the middle of the northern edge."""
        return (self.north, (self.west + self.east) / 2)

    def to_list(self) -> list[float]:
        """[[south, west], [north, east]] flattened, the Leaflet bounds order."""
        return [self.south, self.west, self.north, self.east]


@dataclass
class OverlayStyle:
    """Stroke style of an overlay (Leaflet path options)."""

    color: str
    weight: float
    opacity: float = 1.0

    def to_dict(self) -> dict:
        return {"color": self.color, "weight": self.weight, "opacity": self.opacity}


@dataclass(eq=False)
class Overlay:
    """A renderable line/polygon layer built from one feature collection.

    Attributes:
        kind: "main" or "shadow".
        features: Features that render (points are never stored here).
        style: Current stroke style; mutated by selection and recoloring.
        labels: feature_id -> label text shown on hover/click (main only).
        overlay_id: Unique handle used by the map surface.
    """

    kind: str
    features: list[LayerFeature]
    style: OverlayStyle
    labels: dict[str, str] = field(default_factory=dict)
    overlay_id: str = field(default_factory=lambda: f"overlay-{uuid.uuid4().hex[:8]}")

    @property
    def bounds(self) -> Bounds | None:
        positions = [pos for f in self.features for pos in f.positions()]
        return Bounds.from_positions(positions)

    def set_style(
        self,
        color: str | None = None,
        weight: float | None = None,
        opacity: float | None = None,
    ) -> None:
        if color is not None:
            self.style.color = color
        if weight is not None:
            self.style.weight = weight
        if opacity is not None:
            self.style.opacity = opacity


@dataclass(eq=False)
class LayerEntry:
    """The registry record pairing a KML file name with its two overlays.

    The entry owns its overlays exclusively. It holds no reference to its
    list row; the list controller looks rows up by ``name``.
    """

    name: str
    main: Overlay
    shadow: Overlay
    color: str = DEFAULT_COLOR
    visible: bool = True

    @property
    def overlays(self) -> tuple[Overlay, Overlay]:
        """Both overlays in attach order (shadow below main)."""
        return (self.shadow, self.main)

    @property
    def bounds(self) -> Bounds | None:
        return self.main.bounds
