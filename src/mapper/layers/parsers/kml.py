"""Parse KML 2.2 XML into a FeatureCollection using xml.etree.ElementTree.

Handles Placemark/Point, Placemark/LineString, Placemark/Polygon,
Placemark/MultiGeometry (one feature per part) and gx:Track.
Extracts name, description and ExtendedData/Data values as properties.
KML coordinate format: "lng,lat,alt lng,lat,alt" (longitude first, latitude second).
All coordinates stored as [lng, lat, alt] (GeoJSON convention).
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from mapper.errors import KmlParseError
from mapper.layers.layer import FeatureCollection, LayerFeature

_GX_NS = "{http://www.google.com/kml/ext/2.2}"
_GEOMETRY_TAGS = ("Point", "LineString", "LinearRing", "Polygon", "MultiGeometry")


def parse_kml(kml_string: str | bytes) -> FeatureCollection:
    """Parse a KML document into a FeatureCollection.

    Args:
        kml_string: Raw KML XML content. Bytes are decoded by the XML
            parser itself, so the declared encoding (e.g. ISO-8859-1) applies.

    Returns:
        FeatureCollection with one feature per renderable geometry.

    Raises:
        KmlParseError: If the text is not well-formed XML, cannot be decoded
            or the root element is not <kml>.
    """
    if isinstance(kml_string, str):
        kml_string = kml_string.lstrip("\ufeff")
    try:
        root = ET.fromstring(kml_string)
    except (ET.ParseError, ValueError) as e:
        raise KmlParseError(f"Malformed KML: {e}") from e

    ns = _detect_namespace(root)
    if _local_name(root.tag) != "kml":
        raise KmlParseError(f"Not a KML document (root element <{_local_name(root.tag)}>)")

    # Extract document name
    doc_name = ""
    doc = root.find(f"{ns}Document")
    if doc is not None:
        doc_name = _get_direct_text(doc, "name", ns)

    features: list[LayerFeature] = []
    for idx, pm in enumerate(root.iter(f"{ns}Placemark")):
        features.extend(_parse_placemark(pm, ns, idx))

    return FeatureCollection(name=doc_name, features=features)


def _detect_namespace(root: ET.Element) -> str:
    """Detect KML namespace from root element tag."""
    tag = root.tag
    if "{" in tag:
        return tag.split("}")[0] + "}"
    return ""


def _local_name(tag: str) -> str:
    return tag.split("}", 1)[1] if "}" in tag else tag


def _parse_placemark(pm: ET.Element, ns: str, idx: int) -> list[LayerFeature]:
    """Parse a single Placemark element into zero or more LayerFeatures."""
    properties: dict = {}
    name = _get_direct_text(pm, "name", ns)
    if name:
        properties["name"] = name
    description = _get_direct_text(pm, "description", ns)
    if description:
        properties["description"] = description
    properties.update(_parse_extended_data(pm, ns))

    features: list[LayerFeature] = []
    for geom in _iter_geometries(pm, ns):
        feature = _geometry_to_feature(geom, ns, properties)
        if feature is not None:
            features.append(feature)

    # gx:Track lives outside the KML namespace
    for track in pm.iter(f"{_GX_NS}Track"):
        feature = _parse_track(track, ns, properties)
        if feature is not None:
            features.append(feature)

    if len(features) == 1:
        features[0].feature_id = f"kml-{idx}"
    else:
        for part, feature in enumerate(features):
            feature.feature_id = f"kml-{idx}-{part}"
    return features


def _iter_geometries(parent: ET.Element, ns: str):
    """Yield the geometry elements of a Placemark, unpacking MultiGeometry.

    Walks with an explicit stack in document order, so nesting depth is
    bounded only by the XML parser.
    """
    stack = [iter(parent)]
    while stack:
        child = next(stack[-1], None)
        if child is None:
            stack.pop()
            continue
        local = _local_name(child.tag)
        if local == "MultiGeometry":
            stack.append(iter(child))
        elif local in _GEOMETRY_TAGS:
            yield child


def _geometry_to_feature(geom: ET.Element, ns: str, properties: dict) -> LayerFeature | None:
    local = _local_name(geom.tag)

    if local == "Point":
        coords = _parse_coordinates_list(geom, ns)
        if coords:
            return LayerFeature("", "Point", coords[0], dict(properties))
        return None

    if local in ("LineString", "LinearRing"):
        coords = _parse_coordinates_list(geom, ns)
        if len(coords) >= 2:
            return LayerFeature("", "LineString", coords, dict(properties))
        return None

    if local == "Polygon":
        rings = _parse_polygon_rings(geom, ns)
        if rings:
            return LayerFeature("", "Polygon", rings, dict(properties))
    return None


def _parse_track(track: ET.Element, ns: str, properties: dict) -> LayerFeature | None:
    """Convert a gx:Track to a LineString (gx:coord is "lng lat alt")."""
    coords = []
    for coord in track.findall(f"{_GX_NS}coord"):
        parts = (coord.text or "").split()
        if len(parts) >= 2:
            try:
                lng = float(parts[0])
                lat = float(parts[1])
                alt = float(parts[2]) if len(parts) >= 3 else 0.0
            except ValueError:
                continue
            coords.append([lng, lat, alt])
    if len(coords) < 2:
        return None

    timestamp = None
    when = track.find(f"{ns}when")
    if when is not None and when.text:
        timestamp = when.text.strip()
    return LayerFeature("", "LineString", coords, dict(properties), timestamp=timestamp)


def _get_direct_text(parent: ET.Element, tag: str, ns: str) -> str:
    """Get text content of a direct child element."""
    elem = parent.find(f"{ns}{tag}")
    if elem is not None and elem.text:
        return elem.text.strip()
    return ""


def _parse_extended_data(pm: ET.Element, ns: str) -> dict:
    """ExtendedData/Data name="x"/value -> {"x": value}."""
    data: dict = {}
    extended = pm.find(f"{ns}ExtendedData")
    if extended is None:
        return data
    for item in extended.findall(f"{ns}Data"):
        key = item.get("name")
        if key:
            data[key] = _get_direct_text(item, "value", ns)
    return data


def _parse_coordinate_string(coord_str: str) -> list[list[float]]:
    """Parse KML coordinate string: 'lng,lat,alt lng,lat,alt ...'

    Returns list of [lng, lat, alt] arrays.
    """
    coords = []
    for token in coord_str.strip().split():
        parts = token.strip().split(",")
        if len(parts) >= 2:
            try:
                lng = float(parts[0])
                lat = float(parts[1])
                alt = float(parts[2]) if len(parts) >= 3 and parts[2] else 0.0
                coords.append([lng, lat, alt])
            except ValueError:
                continue
    return coords


def _parse_coordinates_list(geom_elem: ET.Element, ns: str) -> list[list[float]]:
    coord_elem = geom_elem.find(f"{ns}coordinates")
    if coord_elem is None or not coord_elem.text:
        return []
    return _parse_coordinate_string(coord_elem.text)


def _parse_polygon_rings(polygon_elem: ET.Element, ns: str) -> list[list[list[float]]]:
    """Parse polygon rings (outer boundary + optional inner boundaries)."""
    rings = []

    outer = polygon_elem.find(f"{ns}outerBoundaryIs/{ns}LinearRing")
    if outer is None:
        return []
    coords = _parse_coordinates_list(outer, ns)
    if not coords:
        return []
    rings.append(coords)

    # Inner boundaries (holes)
    for inner in polygon_elem.findall(f"{ns}innerBoundaryIs/{ns}LinearRing"):
        coords = _parse_coordinates_list(inner, ns)
        if coords:
            rings.append(coords)

    return rings
