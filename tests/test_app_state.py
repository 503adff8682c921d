from unittest.mock import MagicMock

from eventmap_routing.app_state import AppState
from eventmap_routing.event import Coordinate, Event
from eventmap_routing.route import RouteLeg, RouteResult
from eventmap_routing.route_planner import RoutePlanner, WizardStep


def make_event(event_id, date, lat=None, lng=None, city=None):
    data = {"id": event_id, "title": event_id, "date": date, "city": city}
    if lat is not None:
        data["coordinates"] = {"lat": lat, "lng": lng}
    return Event(data)


def make_state():
    events = [
        make_event("a", "2025-06-01", 35.80, -78.60, city="Raleigh"),
        make_event("b", "2025-06-01", 35.70, -78.50, city="Garner"),
        make_event("c", "2025-06-02", 35.99, -78.90, city="Durham"),
    ]
    directions = MagicMock()
    directions.get_directions.return_value = RouteResult(
        17000, 1320, [RouteLeg(4200, 420), RouteLeg(12800, 900)],
        {"type": "LineString", "coordinates": [[-78.64, 35.78], [-78.6, 35.8], [-78.5, 35.7]]})
    planner = RoutePlanner([], geocode_client=MagicMock(), directions_client=directions)
    return AppState(events, "2025-06-01", planner=planner)


def test_planner_receives_visible_events():
    state = make_state()
    assert sorted(e.id for e in state.planner.events) == ["a", "b"]


def test_geolocation_updates_shared_user_location():
    state = make_state()
    request_id = state.planner.request_geolocation()
    state.planner.on_geolocation_success(request_id, 35.78, -78.64)
    assert state.user_location == Coordinate(-78.64, 35.78)
    assert [city for city, _ in state.grouped_events()] == ["Raleigh", "Garner"]


def test_date_change_clears_selection_and_resets_planner():
    state = make_state()
    assert state.select_event("a").id == "a"
    request_id = state.planner.request_geolocation()
    state.planner.on_geolocation_success(request_id, 35.78, -78.64)
    assert state.planner.step == WizardStep.SELECTING_EVENTS

    state.change_date(1)
    assert state.selected_date == "2025-06-02"
    assert state.selected_event is None
    assert state.planner.step == WizardStep.CHOOSING_LOCATION
    assert [e.id for e in state.planner.events] == ["c"]


def test_select_event_only_from_visible_day():
    state = make_state()
    assert state.select_event("c") is None
    assert state.select_event(None) is None


def test_map_data_includes_route_once_planned():
    state = make_state()
    data = state.map_data(None, 12)
    assert "route" not in data
    assert len(data["markers"]["features"]) == 2

    planner = state.planner
    request_id = planner.request_geolocation()
    planner.on_geolocation_success(request_id, 35.78, -78.64)
    planner.advance_to_transport()
    planner.generate_route()

    data = state.map_data(None, 12)
    assert data["route"]["type"] == "Feature"
    assert data["route"]["geometry"]["type"] == "LineString"
