"""Shared fixtures: KML documents and a populated project store."""

from __future__ import annotations

import pytest

from mapper.projects.store import ProjectStore


def line_kml(name: str = "Route", coords: str = "10.0,51.0,0 10.1,51.1,0 10.2,51.2,0") -> str:
    return f"""\
<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <name>{name}</name>
    <Placemark>
      <name>{name}</name>
      <LineString>
        <coordinates>{coords}</coordinates>
      </LineString>
    </Placemark>
    <Placemark>
      <name>Start</name>
      <Point><coordinates>10.0,51.0,0</coordinates></Point>
    </Placemark>
  </Document>
</kml>
"""


@pytest.fixture
def make_kml():
    """Factory for a one-line KML document (plus one suppressed point)."""
    return line_kml


def latin1_kml(name: str = "Straße Süd") -> bytes:
    """A line document declared and encoded as ISO-8859-1."""
    text = line_kml(name).replace('encoding="UTF-8"', 'encoding="ISO-8859-1"')
    return text.encode("latin-1")


@pytest.fixture
def make_latin1_kml():
    """Factory for an ISO-8859-1 encoded line document."""
    return latin1_kml


@pytest.fixture
def store(tmp_path):
    """ProjectStore with project "Nord" (two KML files) and users general/anna."""
    store = ProjectStore(tmp_path)
    kml_dir = tmp_path / "Befahrungsprojekte" / "Nord" / "KML-Files"
    kml_dir.mkdir(parents=True)
    (kml_dir / "Nord_02_KML_Export.kml").write_text(line_kml("Zwei"), encoding="utf-8")
    (kml_dir / "Nord_01_KML_Export.kml").write_text(line_kml("Eins"), encoding="utf-8")
    (kml_dir / "readme.txt").write_text("not a layer", encoding="utf-8")
    (tmp_path / "User" / "general").mkdir(parents=True)
    (tmp_path / "User" / "anna").mkdir(parents=True)
    return store


@pytest.fixture
def latin1_store(store, tmp_path):
    """The ``store`` fixture plus project "Sued" holding one ISO-8859-1 KML file."""
    kml_dir = tmp_path / "Befahrungsprojekte" / "Sued" / "KML-Files"
    kml_dir.mkdir(parents=True)
    (kml_dir / "Sued_01_KML_Export.kml").write_bytes(latin1_kml())
    return store
