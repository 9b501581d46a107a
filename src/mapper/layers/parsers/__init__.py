"""KML parsing."""

from mapper.layers.parsers.kml import parse_kml

__all__ = ["parse_kml"]
