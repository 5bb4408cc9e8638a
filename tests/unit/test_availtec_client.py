from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from src.adapters.transit import AvailtecTransitProvider
from src.adapters.transit.payloads import Err, Ok, parse_provider_time, validate_stops
from src.domain.exceptions import RouteNotFound, UpstreamPayloadError, UpstreamUnavailable

BASE = "https://transit.test/InfoPoint"

ROUTES = [
    {
        "RouteId": 1,
        "ShortName": 1,
        "LongName": "Downtown Loop",
        "Color": "#FF0000",
        "TextColor": "FFFFFF",
        "IsVisible": True,
        "Unused": "ignored",
    },
    {"RouteId": 2, "ShortName": "2X", "IsVisible": None},
]

ROUTE_DETAILS = {
    "RouteId": 1,
    "ShortName": "1",
    "LongName": "Downtown Loop",
    "Color": "#00FF00",
    "Directions": [{"Dir": "O", "DirectionDesc": "Outbound"}],
    "Stops": [
        {"StopId": 10, "Name": "First", "Latitude": 42.12, "Longitude": -80.08},
        {"StopId": 11, "Name": "Second", "Latitude": 42.13, "Longitude": -80.07},
    ],
    "Vehicles": [
        {
            "VehicleId": 501,
            "Latitude": 42.125,
            "Longitude": -80.075,
            "Heading": 90,
            "LastUpdated": "/Date(1700000000000-0500)/",
        }
    ],
}

DEPARTURES = [
    {
        "StopId": 10,
        "LastUpdated": "/Date(1700000000000-0500)/",
        "RouteDirections": [
            {
                "Direction": "Outbound",
                "DirectionCode": "O",
                "RouteId": 1,
                "Departures": [
                    {
                        "EDT": "/Date(1700000300000-0500)/",
                        "SDT": "/Date(1700000240000-0500)/",
                        "IsCompleted": False,
                        "Trip": {"TripId": 77, "TripStatusReportLabel": "Cancelled"},
                    }
                ],
            }
        ],
    }
]

KML = """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <name>Route 1</name>
    <Placemark><name>Outbound</name>
      <LineString><coordinates>-80.08,42.12,0 -80.07,42.13,0</coordinates></LineString>
    </Placemark>
  </Document>
</kml>"""


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path.removeprefix("/InfoPoint")
    if path == "/rest/Routes/GetVisibleRoutes":
        return httpx.Response(200, json=ROUTES)
    if path == "/rest/RouteDetails/Get/1":
        return httpx.Response(200, json=ROUTE_DETAILS)
    if path == "/rest/RouteDetails/Get/2":
        return httpx.Response(200, content=b"null")
    if path == "/rest/stopdepartures/getallstopdepartures":
        return httpx.Response(200, json=DEPARTURES)
    if path == "/rest/stops/getallstops":
        return httpx.Response(200, json=[{"StopId": 10, "Name": "First"}])
    if path == "/Resources/Traces/Route1.kml":
        return httpx.Response(200, text=KML)
    return httpx.Response(404)


def _provider(handler=_handler) -> AvailtecTransitProvider:
    return AvailtecTransitProvider(base_url=BASE + "/", transport=httpx.MockTransport(handler))


def test_list_routes_maps_payload() -> None:
    routes = asyncio.run(_provider().list_routes())

    assert [r.id for r in routes] == ["1", "2"]
    assert routes[0].short_name == "1"
    assert routes[0].color == "FF0000"
    assert routes[1].is_visible is True


def test_route_details_keep_stop_order_and_vehicles() -> None:
    details = asyncio.run(_provider().get_route_details("1"))

    assert [s.id for s in details.stops] == ["10", "11"]
    assert [s.sequence for s in details.stops] == [0, 1]
    assert details.route.color == "00FF00"
    assert details.vehicles[0].route_id == "1"
    assert details.vehicles[0].last_updated == datetime(
        2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc
    )
    assert details.directions[0].description == "Outbound"


def test_route_details_not_found() -> None:
    with pytest.raises(RouteNotFound):
        asyncio.run(_provider().get_route_details("2"))
    with pytest.raises(RouteNotFound):
        asyncio.run(_provider().get_route_details("404"))


def test_departures_flatten_route_directions() -> None:
    (board,) = asyncio.run(_provider().list_stop_departures())

    (dep,) = board.departures
    assert board.stop_id == "10"
    assert dep.route_id == "1"
    assert dep.trip.trip_id == "77"
    assert dep.is_cancelled
    assert dep.departs_at == dep.estimated_at
    assert dep.scheduled_at < dep.estimated_at


def test_malformed_payload_raises_payload_error() -> None:
    # Stops are missing coordinates.
    with pytest.raises(UpstreamPayloadError):
        asyncio.run(_provider().list_stops())


def test_route_trace_parsed_from_kml() -> None:
    trace = asyncio.run(_provider().get_route_trace("1"))

    assert trace.name == "Route 1"
    (path,) = trace.paths
    assert path.name == "Outbound"
    assert [(p.lon, p.lat) for p in path.points] == [(-80.08, 42.12), (-80.07, 42.13)]


def test_server_errors_and_network_failures_are_unavailable() -> None:
    def _boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamUnavailable):
        asyncio.run(_provider(lambda r: httpx.Response(503)).list_routes())
    with pytest.raises(UpstreamUnavailable):
        asyncio.run(_provider(_boom).list_routes())


def test_validate_stops_rejects_out_of_range_coordinates() -> None:
    bad = validate_stops([{"StopId": 1, "Name": "X", "Latitude": 95, "Longitude": 0}])
    good = validate_stops([{"StopId": 1, "Name": "X", "Latitude": 5, "Longitude": 0}])

    assert isinstance(bad, Err)
    assert isinstance(good, Ok)


def test_parse_provider_time_formats() -> None:
    local = parse_provider_time("/Date(1700000000000-0500)/")
    assert local is not None
    assert local.utcoffset() == -timedelta(hours=5)
    assert local == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    assert parse_provider_time("2024-05-01T10:00:00Z") == datetime(
        2024, 5, 1, 10, tzinfo=timezone.utc
    )
    assert parse_provider_time("") is None
    assert parse_provider_time("not a date") is None
