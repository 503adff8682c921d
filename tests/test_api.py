from unittest.mock import patch, MagicMock

from fastapi.testclient import TestClient

from eventmap_routing.api import create_app
from eventmap_routing.directions_client import DirectionsClient
from eventmap_routing.geocode_client import GeocodeClient


def mock_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = str(payload)
    return response


def make_client(token="token"):
    app = create_app(GeocodeClient(token=token), DirectionsClient(token=token))
    return TestClient(app)


COORDS = [{"lng": -78.64, "lat": 35.78}, {"lng": -78.60, "lat": 35.80}]


def test_health():
    assert make_client().get("/health").json() == {"ok": True}


def test_directions_rejects_too_many_coordinates():
    with patch('requests.get') as mock_get:
        response = make_client().post("/api/directions", json={"coordinates": COORDS * 13, "profile": "driving"})
        mock_get.assert_not_called()
    assert response.status_code == 400
    assert response.json() == {"error": "Maximum 25 coordinates allowed"}


def test_directions_rejects_bad_profile_and_range():
    client = make_client()
    response = client.post("/api/directions", json={"coordinates": COORDS, "profile": "flying"})
    assert response.status_code == 400
    bad = [{"lng": -78.64, "lat": 95}, {"lng": -78.6, "lat": 35.8}]
    response = client.post("/api/directions", json={"coordinates": bad, "profile": "walking"})
    assert response.status_code == 400
    assert response.json()["error"] == "Coordinates out of valid range"


def test_directions_success():
    payload = {"code": "Ok", "routes": [{"geometry": {"type": "LineString", "coordinates": []},
                                         "distance": 4200, "duration": 420,
                                         "legs": [{"distance": 4200, "duration": 420}]}]}
    with patch('requests.get', return_value=mock_response(payload=payload)):
        response = make_client().post("/api/directions", json={"coordinates": COORDS, "profile": "cycling"})
    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "Ok"
    assert body["routes"][0]["legs"] == [{"distance": 4200.0, "duration": 420.0}]


def test_directions_no_route():
    with patch('requests.get', return_value=mock_response(payload={"code": "NoRoute", "routes": []})):
        response = make_client().post("/api/directions", json={"coordinates": COORDS, "profile": "driving"})
    assert response.status_code == 404
    assert response.json() == {"error": "No route found", "code": "NoRoute"}


def test_invalid_json_body():
    response = make_client().post("/api/directions", content="not json",
                                  headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON body"}


def test_geocode_endpoint():
    feature = {"geometry": {"coordinates": [-78.6382, 35.7796]},
               "properties": {"full_address": "Raleigh, North Carolina, United States"}}
    with patch('requests.get', return_value=mock_response(payload={"features": [feature]})):
        response = make_client().post("/api/geocode", json={"address": "Raleigh"})
    assert response.status_code == 200
    assert response.json() == {"latitude": 35.7796, "longitude": -78.6382,
                               "fullAddress": "Raleigh, North Carolina, United States"}


def test_geocode_errors():
    client = make_client()
    response = client.post("/api/geocode", json={})
    assert response.status_code == 400
    assert response.json()["error"] == "Address is required"

    with patch('requests.get', return_value=mock_response(payload={"features": []})):
        response = client.post("/api/geocode", json={"address": "nowhere"})
    assert response.status_code == 404
    assert response.json()["error"] == "Address not found"

    response = make_client(token="").post("/api/geocode", json={"address": "Raleigh"})
    assert response.status_code == 500
    assert response.json() == {"error": "Mapbox token not configured", "code": "config"}
