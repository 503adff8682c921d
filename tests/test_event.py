import json

from eventmap_routing.event import Coordinate, Event, is_valid_coordinate, load_events, normalize_date


def test_normalize_date_variants():
    assert normalize_date("2025-06-01") == "2025-06-01"
    assert normalize_date("2025-06-01T10:00:00") == "2025-06-01"
    # 02:00 UTC is still the previous evening in Eastern time
    assert normalize_date("2025-06-01T02:00:00Z") == "2025-05-31"
    assert normalize_date("2025-06-01T02:00:00Z", tz_name="UTC") == "2025-06-01"
    assert normalize_date("notadate") is None
    assert normalize_date(None) is None
    assert normalize_date("") is None


def test_event_parses_coordinates():
    e = Event({"id": "1", "title": "Concert", "date": "2025-06-01",
               "coordinates": {"lat": 35.78, "lng": -78.64}})
    assert e.coordinates == Coordinate(-78.64, 35.78)
    assert e.has_coordinates


def test_event_drops_invalid_coordinates():
    e = Event({"id": "1", "title": "Bad", "coordinates": {"lat": 95, "lng": -78.64}})
    assert e.coordinates is None
    e2 = Event({"id": "2", "title": "Missing"})
    assert e2.coordinates is None
    assert not e2.has_coordinates


def test_is_valid_coordinate():
    assert is_valid_coordinate(-78.64, 35.78)
    assert not is_valid_coordinate(-181, 0)
    assert not is_valid_coordinate(0, 95)
    assert not is_valid_coordinate("1", 0)
    assert not is_valid_coordinate(True, 0)


def test_to_dict_roundtrip():
    data = {
        "id": "abc",
        "title": "Farmers Market",
        "description": "Fresh produce",
        "location": "State Farmers Market",
        "date": "2025-06-01",
        "coordinates": {"lat": 35.76, "lng": -78.66},
        "city": "Raleigh",
        "cost": "Free",
        "times": "8am - 1pm",
        "categories": ["food"],
        "createdBy": "user_1",
    }
    result = Event(data).to_dict()
    for key, value in data.items():
        assert result[key] == value
    assert "imageUrl" not in result


def test_load_events_skips_entries_without_id(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(json.dumps([
        {"id": "1", "title": "One", "date": "2025-06-01"},
        {"title": "No id"},
    ]))
    events = load_events(str(path))
    assert [e.id for e in events] == ["1"]
