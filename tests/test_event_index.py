import datetime

import pytz

from eventmap_routing.event import Coordinate, Event
from eventmap_routing.event_index import (UNKNOWN_CITY, EventIndex, filter_events_by_date,
                                          group_by_city, is_previous_day_disabled, shift_date,
                                          today_in_region)


def make_event(event_id, date="2025-06-01", city=None, lat=None, lng=None):
    data = {"id": event_id, "title": event_id, "date": date, "city": city}
    if lat is not None:
        data["coordinates"] = {"lat": lat, "lng": lng}
    return Event(data)


def test_filter_matches_only_exact_day():
    event = make_event("e1", date="2025-06-01")
    assert filter_events_by_date([event], "2025-06-01") == [event]
    assert filter_events_by_date([event], "2025-06-02") == []
    assert filter_events_by_date([event], "2025-05-31") == []


def test_filter_ignores_time_of_day_and_missing_dates():
    with_time = make_event("timed", date="2025-06-01T19:30:00")
    undated = make_event("undated", date=None)
    assert filter_events_by_date([with_time, undated], "2025-06-01") == [with_time]


def test_group_by_city_alphabetical_unknown_last():
    events = [
        make_event("r", city="Raleigh"),
        make_event("u"),
        make_event("d", city="Durham"),
        make_event("c", city="Cary"),
    ]
    groups = group_by_city(events)
    assert [city for city, _ in groups] == ["Cary", "Durham", "Raleigh", UNKNOWN_CITY]


def test_group_by_city_sorted_by_nearest_member():
    start = Coordinate(-78.64, 35.78)
    events = [
        make_event("durham", city="Durham", lat=35.99, lng=-78.90),
        make_event("raleigh-far", city="Raleigh", lat=35.85, lng=-78.64),
        make_event("raleigh-near", city="Raleigh", lat=35.781, lng=-78.64),
        make_event("nowhere-city", city="Apex"),
        make_event("unknown", lat=35.78, lng=-78.64),
    ]
    groups = group_by_city(events, reference=start)
    assert [city for city, _ in groups] == ["Raleigh", "Durham", "Apex", UNKNOWN_CITY]
    assert [e.id for e in groups[0][1]] == ["raleigh-near", "raleigh-far"]


def test_today_in_region_uses_eastern_time():
    now = datetime.datetime(2025, 6, 1, 2, 0, tzinfo=pytz.utc)
    assert today_in_region(now) == "2025-05-31"
    assert today_in_region(datetime.datetime(2025, 6, 1, 16, 0)) == "2025-06-01"


def test_shift_and_previous_day():
    assert shift_date("2025-06-30", 1) == "2025-07-01"
    assert shift_date("2025-03-01", -1) == "2025-02-28"
    assert is_previous_day_disabled("2025-06-01", today="2025-06-01")
    assert not is_previous_day_disabled("2025-06-02", today="2025-06-01")


def test_event_index_set_date_reports_changes():
    events = [make_event("a", date="2025-06-01", lat=35.78, lng=-78.64),
              make_event("b", date="2025-06-02")]
    index = EventIndex(events, "2025-06-01")
    assert [e.id for e in index.for_date()] == ["a"]
    assert [e.id for e in index.located_for_date()] == ["a"]
    assert index.change_date(1) is True
    assert index.selected_date == "2025-06-02"
    assert index.located_for_date() == []
    assert index.set_date("2025-06-02") is False
    assert index.find("b") is events[1]
