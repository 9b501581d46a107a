"""GeoJSON export of features and overlays."""

from mapper.layers.exporters.geojson import export_feature_collection, export_overlay

__all__ = ["export_feature_collection", "export_overlay"]
