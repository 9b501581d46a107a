"""Map layer system — KML parsing, overlays, map surface and layer registry.

The KML parser uses only Python stdlib (xml.etree.ElementTree).
"""

from mapper.layers.converter import KmlConverter, OverlayPair
from mapper.layers.layer import (
    Bounds,
    FeatureCollection,
    LayerEntry,
    LayerFeature,
    Overlay,
    OverlayStyle,
)
from mapper.layers.map_surface import Decoration, MapSurface
from mapper.layers.registry import LayerRegistry
from mapper.layers.selection import SelectionSet

__all__ = [
    "Bounds",
    "Decoration",
    "FeatureCollection",
    "KmlConverter",
    "LayerEntry",
    "LayerFeature",
    "LayerRegistry",
    "MapSurface",
    "Overlay",
    "OverlayPair",
    "OverlayStyle",
    "SelectionSet",
]
