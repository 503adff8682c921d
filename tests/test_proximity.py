from eventmap_routing.event import Coordinate, Event
from eventmap_routing.proximity import (NearestNeighborOrderer, distance_between,
                                        haversine_distance, nearest_events,
                                        order_by_nearest_neighbor, rank_by_proximity,
                                        sort_by_proximity)


def make_event(event_id, lat=None, lng=None):
    data = {"id": event_id, "title": event_id, "date": "2025-06-01"}
    if lat is not None:
        data["coordinates"] = {"lat": lat, "lng": lng}
    return Event(data)


START = Coordinate(-78.64, 35.78)


def test_haversine_distance_basic():
    # Distance between (0,0) and (0,1) approx 111.19km
    dist = haversine_distance(0, 0, 0, 1)
    assert 111000 <= dist <= 112000


def test_one_degree_of_latitude():
    dist = distance_between(Coordinate(-78.64, 35.0), Coordinate(-78.64, 36.0))
    assert abs(dist - 111195) < 500


def test_distance_symmetric_and_zero():
    a = Coordinate(-78.64, 35.78)
    b = Coordinate(-78.50, 35.70)
    assert distance_between(a, b) == distance_between(b, a)
    assert distance_between(a, a) == 0


def test_rank_nearer_event_first():
    farther = make_event("farther", 35.70, -78.50)
    nearer = make_event("nearer", 35.80, -78.60)
    ranked = rank_by_proximity(START, [farther, nearer])
    assert [event.id for event, _ in ranked] == ["nearer", "farther"]
    assert 3500 < ranked[0][1] < 5000
    assert 14000 < ranked[1][1] < 17000


def test_rank_ties_keep_input_order_and_input_untouched():
    events = [make_event("b", 35.80, -78.60), make_event("a", 35.80, -78.60), make_event("c", 35.79, -78.64)]
    original = list(events)
    result = sort_by_proximity(START, events)
    assert [e.id for e in result] == ["c", "b", "a"]
    assert events == original


def test_rank_skips_events_without_coordinates():
    events = [make_event("nowhere"), make_event("here", 35.78, -78.64)]
    assert [e.id for e in sort_by_proximity(START, events)] == ["here"]
    assert rank_by_proximity(START, []) == []


def test_nearest_events_limit():
    events = [make_event(str(i), 35.78 + i * 0.01, -78.64) for i in range(15)]
    nearest = nearest_events(START, events, 10)
    assert len(nearest) == 10
    assert [e.id for e, _ in nearest] == [str(i) for i in range(10)]
    assert nearest_events(START, events, 0) == []


def test_greedy_order_follows_nearest_neighbor():
    stops = [make_event("third", 0, 3), make_event("first", 0, 1), make_event("second", 0, 2)]
    ordered = order_by_nearest_neighbor(Coordinate(0, 0), stops)
    assert [e.id for e in ordered] == ["first", "second", "third"]


def test_greedy_is_a_heuristic_not_closest_first():
    # From the start, "a" is nearest; after "a", "c" is nearer than "b"
    stops = [make_event("b", 0, -1.5), make_event("a", 0, 1), make_event("c", 0, 2)]
    ordered = order_by_nearest_neighbor(Coordinate(0, 0), stops)
    assert [e.id for e in ordered] == ["a", "c", "b"]


def test_greedy_ties_broken_by_input_order():
    stops = [make_event("west", 0, -1), make_event("east", 0, 1)]
    ordered = NearestNeighborOrderer().order(Coordinate(0, 0), stops)
    assert [e.id for e in ordered] == ["west", "east"]


def test_greedy_order_is_deterministic():
    stops = [make_event(str(i), 35.7 + (i * 7 % 5) * 0.02, -78.7 + (i * 3 % 4) * 0.03) for i in range(8)]
    first = [e.id for e in order_by_nearest_neighbor(START, stops)]
    second = [e.id for e in order_by_nearest_neighbor(START, list(stops))]
    assert first == second
    assert sorted(first) == sorted(e.id for e in stops)


def test_scenario_route_visits_nearer_event_first():
    farther = make_event("farther", 35.70, -78.50)
    nearer = make_event("nearer", 35.80, -78.60)
    ordered = order_by_nearest_neighbor(START, [farther, nearer])
    assert [e.id for e in ordered] == ["nearer", "farther"]
