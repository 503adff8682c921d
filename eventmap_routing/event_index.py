import datetime
import logging
from collections import OrderedDict
from typing import Iterable, List, Optional, Tuple

import pytz

from .config import Config
from .event import Coordinate, Event, normalize_date
from .proximity import located, nearest_distance, sort_by_proximity

UNKNOWN_CITY = "Unknown Location"


def filter_events_by_date(events: Iterable[Event], selected_date: str) -> List[Event]:
    """
    Events whose normalized calendar day equals ``selected_date``.

    Events without a date never match. Time of day plays no part.
    """
    target = normalize_date(selected_date)
    if target is None:
        logging.warning(f"Invalid date filter: {selected_date!r}")
        return []
    return [event for event in events if event.date is not None and event.date == target]


def group_by_city(events: Iterable[Event], reference: Optional[Coordinate] = None) -> List[Tuple[str, List[Event]]]:
    """
    Partition events by city.

    With a reference point the events inside each group are sorted nearest
    first and the groups are ordered by their nearest member; without one,
    groups are alphabetical. Events without a city always land in the
    "Unknown Location" group, which always comes last.
    """
    events = list(events)
    if reference is not None:
        located_events = sort_by_proximity(reference, events)
        events = located_events + [event for event in events if event.coordinates is None]

    groups = OrderedDict()
    for event in events:
        groups.setdefault(event.city or UNKNOWN_CITY, []).append(event)

    unknown = groups.pop(UNKNOWN_CITY, None)
    if reference is not None:
        cities = sort_city_groups(groups, reference)
    else:
        cities = sorted(groups, key=lambda city: city.lower())

    result = [(city, groups[city]) for city in cities]
    if unknown:
        result.append((UNKNOWN_CITY, unknown))
    return result


def sort_city_groups(groups, reference: Coordinate) -> List[str]:
    """City names ordered by the distance of each group's nearest located event."""
    def key(city):
        dist = nearest_distance(reference, groups[city])
        # Groups with no located member follow the located ones, alphabetically
        return (dist is None, dist if dist is not None else 0.0, city.lower())
    return sorted(groups, key=key)


def today_in_region(now: Optional[datetime.datetime] = None, tz_name: Optional[str] = None) -> str:
    """Today's date as ``YYYY-MM-DD`` in the regional timezone."""
    tz = pytz.timezone(tz_name or Config.TIMEZONE)
    if now is None:
        now = datetime.datetime.now(pytz.utc)
    elif now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(tz).date().isoformat()


def shift_date(selected_date: str, days: int) -> str:
    day = datetime.date.fromisoformat(selected_date)
    return (day + datetime.timedelta(days=days)).isoformat()


def is_previous_day_disabled(selected_date: str, today: Optional[str] = None) -> bool:
    """Browsing stops at today; earlier days are not offered."""
    today = today or today_in_region()
    return shift_date(selected_date, -1) < today


class EventIndex:
    """
    The loaded events plus the currently selected day.

    ``events`` is never modified; every accessor derives a fresh list.
    """

    def __init__(self, events: Iterable[Event], selected_date: Optional[str] = None):
        self.events = list(events)
        self.selected_date = selected_date or today_in_region()

    def for_date(self, selected_date: Optional[str] = None) -> List[Event]:
        return filter_events_by_date(self.events, selected_date or self.selected_date)

    def located_for_date(self, selected_date: Optional[str] = None) -> List[Event]:
        """The selected day's events that have coordinates."""
        return located(self.for_date(selected_date))

    def grouped(self, reference: Optional[Coordinate] = None) -> List[Tuple[str, List[Event]]]:
        return group_by_city(self.for_date(), reference)

    def find(self, event_id) -> Optional[Event]:
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    def set_date(self, selected_date: str) -> bool:
        """Select a day. Returns True when the visible event set changed."""
        normalized = normalize_date(selected_date)
        if normalized is None:
            raise ValueError(f"Invalid date: {selected_date!r}")
        before = {event.id for event in self.for_date()}
        self.selected_date = normalized
        after = {event.id for event in self.for_date()}
        logging.debug(f"Selected date {normalized}: {len(after)} events")
        return before != after

    def change_date(self, days: int) -> bool:
        return self.set_date(shift_date(self.selected_date, days))
