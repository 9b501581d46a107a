"""Export features and overlays to GeoJSON dicts (RFC 7946 compliant).

GeoJSON coordinates are [lng, lat] (already the internal storage convention).
Overlays carry their stroke style as a foreign member so a Leaflet client
can hand the dict straight to ``L.geoJSON(data, {style: data.style})``.
"""

from __future__ import annotations

from mapper.layers.layer import FeatureCollection, LayerFeature, Overlay


def export_feature_collection(collection: FeatureCollection) -> dict:
    """Export a FeatureCollection (points included) to a GeoJSON dict.

    Args:
        collection: The parsed collection.

    Returns:
        Dict representing a valid GeoJSON FeatureCollection.
    """
    return {
        "type": "FeatureCollection",
        "name": collection.name,
        "features": [_feature_to_geojson(f) for f in collection.features],
    }


def export_overlay(overlay: Overlay) -> dict:
    """Export one overlay with its style, bounds and labels."""
    features = []
    for feature in overlay.features:
        gj_feature = _feature_to_geojson(feature)
        label = overlay.labels.get(feature.feature_id)
        if label:
            gj_feature["properties"]["label"] = label
        features.append(gj_feature)

    bounds = overlay.bounds
    return {
        "type": "FeatureCollection",
        "id": overlay.overlay_id,
        "kind": overlay.kind,
        "style": overlay.style.to_dict(),
        "bbox": _bbox(bounds) if bounds else None,
        "features": features,
    }


def _bbox(bounds) -> list[float]:
    # RFC 7946 bbox order: west, south, east, north
    return [bounds.west, bounds.south, bounds.east, bounds.north]


def _feature_to_geojson(feature: LayerFeature) -> dict:
    """Convert a LayerFeature to a GeoJSON Feature dict."""
    properties = dict(feature.properties)
    if feature.timestamp:
        properties["timestamp"] = feature.timestamp
    return {
        "type": "Feature",
        "id": feature.feature_id,
        "geometry": {
            "type": feature.geometry_type,
            "coordinates": feature.coordinates,
        },
        "properties": properties,
    }
