from __future__ import annotations

import pytest

from src.adapters.transit.kml import parse_route_trace
from src.domain.exceptions import UpstreamPayloadError


def test_placemarks_without_namespace_or_coordinates() -> None:
    kml = """<kml><Document>
      <Placemark><name>Empty</name></Placemark>
      <Placemark><LineString><coordinates>
        -80.1,42.1 -80.2,42.2,15
      </coordinates></LineString></Placemark>
    </Document></kml>"""

    trace = parse_route_trace(kml)

    assert trace.name == "Unknown Route"
    (path,) = trace.paths
    assert path.name == "Unknown Path"
    assert [p.alt for p in path.points] == [0.0, 15.0]


@pytest.mark.parametrize(
    "kml",
    [
        "<kml><Document>",
        "<kml><Placemark><coordinates>-80.1</coordinates></Placemark></kml>",
        "<kml><Placemark><coordinates>a,b,c</coordinates></Placemark></kml>",
    ],
)
def test_malformed_markup_raises(kml: str) -> None:
    with pytest.raises(UpstreamPayloadError):
        parse_route_trace(kml)
