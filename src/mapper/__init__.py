"""Befahrer Mapper core — KML ingestion, layer registry, list selection.

Nothing in this package imports the web framework; the FastAPI layer in
``app`` renders the plain data it exposes.
"""

__version__ = "0.1.0"
