"""KmlConverter — turn one KML document into a shadow + main overlay pair.

Pipeline: parse XML -> generic feature collection -> two overlays built
from the same features, point features suppressed in both. The pair is
attached to the map only after the whole pipeline succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass

from mapper.layers.layer import (
    DEFAULT_COLOR,
    SHADOW_COLOR,
    FeatureCollection,
    Overlay,
    OverlayStyle,
)
from mapper.layers.map_surface import MapSurface
from mapper.layers.parsers.kml import parse_kml

SHADOW_OPACITY = 0.5
SELECTED_SHADOW_OPACITY = 1.0


@dataclass
class OverlayPair:
    main: Overlay
    shadow: Overlay
    collection: FeatureCollection


class KmlConverter:
    """Build overlays from KML text and attach them to a map surface.

    Args:
        map_surface: Where the overlays are attached.
        base_weight: Main line weight; the shadow is twice as wide.
        main_color: Initial main stroke color.
        main_opacity: Main stroke opacity, the same for local and remote files.
    """

    def __init__(
        self,
        map_surface: MapSurface,
        base_weight: float = 3,
        main_color: str = DEFAULT_COLOR,
        main_opacity: float = 1.0,
    ) -> None:
        self._map = map_surface
        self.base_weight = base_weight
        self.main_color = main_color
        self.main_opacity = main_opacity

    @property
    def shadow_weight(self) -> float:
        return self.base_weight * 2

    def build(self, kml_text: str | bytes) -> OverlayPair:
        """Parse and build both overlays without touching the map.

        Raises:
            KmlParseError: If the text is not well-formed KML.
        """
        collection = parse_kml(kml_text)
        lines = collection.without_points()

        shadow = Overlay(
            kind="shadow",
            features=lines,
            style=OverlayStyle(SHADOW_COLOR, self.shadow_weight, SHADOW_OPACITY),
        )
        main = Overlay(
            kind="main",
            features=lines,
            style=OverlayStyle(self.main_color, self.base_weight, self.main_opacity),
            labels={
                f.feature_id: f.properties["name"]
                for f in lines
                if f.properties.get("name")
            },
        )
        return OverlayPair(main=main, shadow=shadow, collection=collection)

    def convert(self, kml_text: str | bytes) -> OverlayPair:
        """Build both overlays and attach them, shadow below main.

        Raises:
            KmlParseError: If the text is not well-formed KML. Nothing is
                attached in that case.
        """
        pair = self.build(kml_text)
        self._map.add_overlay(pair.shadow)
        self._map.add_overlay(pair.main)
        return pair

    def detach(self, pair: OverlayPair) -> None:
        """Remove both overlays of a pair from the map."""
        self._map.remove_overlay(pair.main)
        self._map.remove_overlay(pair.shadow)
