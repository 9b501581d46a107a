"""Filename decoding for survey KML files.

Survey exports end in a fixed-width tail; the two characters 13 positions
before the end of the stem are the section number shown in the list
(``Befahrung_2023_01_Strecke_KML.kml`` style names).
"""

from __future__ import annotations

from mapper.errors import InvalidFileTypeError

KML_SUFFIX = ".kml"
KEY_OFFSET = 13
KEY_WIDTH = 2


def require_kml_name(filename: str) -> str:
    """Raise InvalidFileTypeError unless the name ends in lowercase ``.kml``."""
    if not filename.endswith(KML_SUFFIX):
        raise InvalidFileTypeError(f"Not a KML file: {filename}")
    return filename


def strip_suffix(filename: str) -> str:
    if filename.endswith(KML_SUFFIX):
        return filename[: -len(KML_SUFFIX)]
    return filename


def extract_key(filename: str) -> str:
    """Return the 2-character ordering key of a KML file name.

    Both slice offsets are clamped at 0, so stems shorter than 13 characters
    give a shorter (possibly empty) key instead of wrapping around.
    """
    stem = strip_suffix(filename)
    start = len(stem) - KEY_OFFSET
    return stem[max(start, 0):max(start + KEY_WIDTH, 0)]


def sort_key(filename: str) -> tuple[str, str]:
    """Display order: extracted key, then the full name for equal keys."""
    return (extract_key(filename), filename)
