import json
import re
from urllib.parse import parse_qs, urlsplit

import pytest
import requests
import responses

from delivroute.geocoding import (
    GeocodingError,
    GeocodingResponse,
    GeocodingService,
    parse_geocoding_payload,
)

API_BASE = "https://geo.example.com"
FORWARD = re.compile(r"https://geo\.example\.com/search/geocode/v6/forward.*")


def _feature(lon, lat, **properties):
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": properties,
    }


def _collection(*features):
    return {"type": "FeatureCollection", "features": list(features)}


def _service():
    service = GeocodingService("token", api_base=API_BASE, timeout=5)
    service.batch_pause = 0
    return service


def test_geocode_known_address():
    service = _service()
    body = _collection(
        _feature(2.3311, 48.8690, full_address="15 Rue de la Paix, 75002 Paris")
    )
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, FORWARD, json=body)
        result = service.geocode_address("15 Rue de la Paix, 75001 Paris")
    assert result.success
    assert result.latitude == pytest.approx(48.8690)
    assert result.longitude == pytest.approx(2.3311)
    assert result.formatted_address == "15 Rue de la Paix, 75002 Paris"
    assert result.message == "Geocoding successful"
    assert result.error is None


def test_request_carries_query_parameters_and_agent():
    service = _service()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, FORWARD, json=_collection(_feature(1.0, 2.0)))
        result = service.geocode_address("15 Rue de la Paix, 75001 Paris")
        request = rsps.calls[0].request
    assert result.success is True
    assert (result.longitude, result.latitude) == (1.0, 2.0)
    assert "q=15%20Rue%20de%20la%20Paix%2C%2075001%20Paris" in request.url
    query = parse_qs(urlsplit(request.url).query)
    assert query["q"] == ["15 Rue de la Paix, 75001 Paris"]
    assert query["access_token"] == ["token"]
    assert query["country"] == ["fr"]
    assert query["limit"] == ["1"]
    assert request.headers["User-Agent"] == "DeliveryRouting/1.0"


def test_http_error_status_gives_unsuccessful_response():
    service = _service()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, FORWARD, status=500, body="boom")
        result = service.geocode_address("1 Rue X")
    assert result.success is False
    assert result.error == "Geocoding failed: 500 Internal Server Error"
    assert result.latitude is None


def test_no_features_gives_not_found_message():
    service = _service()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, FORWARD, json=_collection())
        result = service.geocode_address("nowhere")
    assert result.success is False
    assert result.message == "No coordinates found for this address"
    assert result.error is None


def test_unreadable_body_raises():
    service = _service()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, FORWARD, body="not json")
        with pytest.raises(GeocodingError, match="Failed to parse geocoding response"):
            service.geocode_address("1 Rue X")


def test_connection_failure_raises():
    service = _service()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, FORWARD, body=requests.ConnectionError("down"))
        with pytest.raises(GeocodingError):
            service.geocode_address("1 Rue X")


def test_parse_prefers_full_address_then_place_name_then_name():
    full = parse_geocoding_payload(
        _collection(_feature(1, 2, full_address="A", place_name="B", name="C"))
    )
    place = parse_geocoding_payload(_collection(_feature(1, 2, place_name="B", name="C")))
    name = parse_geocoding_payload(_collection(_feature(1, 2, name="C")))
    none = parse_geocoding_payload(_collection(_feature(1, 2)))
    assert [full.formatted_address, place.formatted_address, name.formatted_address] == ["A", "B", "C"]
    assert none.success and none.formatted_address is None


def test_parse_uses_only_first_feature():
    result = parse_geocoding_payload(
        json.dumps(_collection(_feature(3.0, 4.0, name="first"), _feature(5.0, 6.0, name="second")))
    )
    assert (result.longitude, result.latitude) == (3.0, 4.0)
    assert result.formatted_address == "first"


def test_parse_short_coordinates_is_not_found():
    feature = _feature(1.0, 2.0)
    feature["geometry"]["coordinates"] = [1.0]
    result = parse_geocoding_payload(_collection(feature))
    assert result.success is False
    assert result.message == "No coordinates found for this address"


@pytest.mark.parametrize(
    "payload",
    [
        {"features": []},
        {"type": "FeatureCollection"},
        {"type": "FeatureCollection", "features": [{"type": "Feature"}]},
        {"type": "FeatureCollection", "features": [
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": ["x", 1]}, "properties": {}}
        ]},
        "[1, 2",
        [1, 2],
    ],
)
def test_parse_rejects_malformed_documents(payload):
    with pytest.raises(GeocodingError):
        parse_geocoding_payload(payload)


def test_response_to_dict_round_trip():
    original = GeocodingResponse(True, 1.5, 2.5, "here", "ok", None)
    assert GeocodingResponse(**original.to_dict()) == original


def test_batch_keeps_order_across_chunks():
    service = _service()

    def reply(request):
        query = parse_qs(urlsplit(request.url).query)
        number = int(query["q"][0].split()[-1])
        return 200, {}, json.dumps(_collection(_feature(float(number), 45.0)))

    addresses = [f"addr {n}" for n in range(12)]
    with responses.RequestsMock() as rsps:
        rsps.add_callback(responses.GET, FORWARD, callback=reply)
        results = service.batch_geocode(addresses)
        calls = len(rsps.calls)
    assert calls == 12
    assert [r.longitude for r in results] == [float(n) for n in range(12)]
    assert all(r.success for r in results)


def test_batch_turns_errors_into_failed_results():
    service = _service()

    def reply(request):
        query = parse_qs(urlsplit(request.url).query)
        if query["q"][0] == "bad":
            return 200, {}, "garbage"
        return 200, {}, json.dumps(_collection(_feature(1.0, 2.0)))

    with responses.RequestsMock() as rsps:
        rsps.add_callback(responses.GET, FORWARD, callback=reply)
        results = service.batch_geocode(["good", "bad"])
    assert results[0].success is True
    assert results[1].success is False
    assert results[1].error.startswith("Failed to parse geocoding response")


def test_batch_of_nothing_is_empty():
    assert _service().batch_geocode([]) == []