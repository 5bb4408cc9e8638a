from __future__ import annotations

import xml.etree.ElementTree as ET

from src.domain.exceptions import UpstreamPayloadError
from src.domain.models import RouteTrace, TracePath, TracePoint


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child_text(elem: ET.Element, name: str) -> str | None:
    for child in elem:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return None


def _parse_coordinates(text: str) -> tuple[TracePoint, ...]:
    points: list[TracePoint] = []
    for triple in text.split():
        parts = triple.split(",")
        if len(parts) < 2:
            raise UpstreamPayloadError(f"Malformed coordinate tuple: {triple!r}")
        try:
            lon = float(parts[0])
            lat = float(parts[1])
            alt = float(parts[2]) if len(parts) > 2 and parts[2] else 0.0
        except ValueError as exc:
            raise UpstreamPayloadError(f"Malformed coordinate tuple: {triple!r}") from exc
        points.append(TracePoint(lon=lon, lat=lat, alt=alt))
    return tuple(points)


def parse_route_trace(kml_text: str) -> RouteTrace:
    """Extract named placemarks and their coordinate triples from KML.

    Placemarks without coordinates are skipped.
    """

    try:
        root = ET.fromstring(kml_text)
    except ET.ParseError as exc:
        raise UpstreamPayloadError(f"Route trace is not valid KML: {exc}") from exc

    doc_name = None
    for elem in root.iter():
        if _local(elem.tag) == "Document":
            doc_name = _child_text(elem, "name")
            break

    paths: list[TracePath] = []
    for placemark in root.iter():
        if _local(placemark.tag) != "Placemark":
            continue
        coords_text = ""
        for elem in placemark.iter():
            if _local(elem.tag) == "coordinates":
                coords_text = (elem.text or "").strip()
                break
        if not coords_text:
            continue
        paths.append(
            TracePath(
                name=_child_text(placemark, "name") or "Unknown Path",
                points=_parse_coordinates(coords_text),
            )
        )

    return RouteTrace(name=doc_name or "Unknown Route", paths=tuple(paths))
