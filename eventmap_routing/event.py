import json
import logging
import numbers
from datetime import datetime, date
from typing import Dict, Any, List, Optional

import pytz

from .config import Config


class Coordinate:
    """A (longitude, latitude) pair in decimal degrees."""

    def __init__(self, lng, lat):
        self.lng = float(lng)
        self.lat = float(lat)

    @classmethod
    def from_dict(cls, data):
        """Build from a ``{lng, lat}`` or ``{longitude, latitude}`` mapping."""
        if not data:
            return None
        lng = data.get('lng', data.get('longitude'))
        lat = data.get('lat', data.get('latitude'))
        if lng is None or lat is None:
            return None
        return cls(lng, lat)

    def is_valid(self) -> bool:
        return -180 <= self.lng <= 180 and -90 <= self.lat <= 90

    def to_dict(self) -> Dict[str, float]:
        return {"lng": self.lng, "lat": self.lat}

    def __eq__(self, other):
        if not isinstance(other, Coordinate):
            return NotImplemented
        return self.lng == other.lng and self.lat == other.lat

    def __hash__(self):
        return hash((self.lng, self.lat))

    def __repr__(self):
        return f"Coordinate({self.lng}, {self.lat})"


def is_valid_coordinate(lng, lat) -> bool:
    """True when both values are real numbers inside the lng/lat ranges."""
    for value in (lng, lat):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            return False
    return -180 <= lng <= 180 and -90 <= lat <= 90


def normalize_date(value, tz_name: Optional[str] = None) -> Optional[str]:
    """
    Normalize an event date to ``YYYY-MM-DD``.

    Date-only strings are taken as-is. Date-times carrying an offset are moved
    into the regional timezone first; naive date-times keep their own day.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value.isoformat()
    else:
        text = str(value).strip()
        if len(text) == 10:
            try:
                return date.fromisoformat(text).isoformat()
            except ValueError:
                return None
        try:
            parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        tz = pytz.timezone(tz_name or Config.TIMEZONE)
        parsed = parsed.astimezone(tz)
    return parsed.date().isoformat()


class Event:
    def __init__(self, event_dict: Dict[str, Any]) -> None:
        # Initialize the event with data from the event source
        self.id = event_dict.get('id')
        self.title = event_dict.get('title', '')
        self.description = event_dict.get('description', '')
        self.location = event_dict.get('location', '')
        self.address = event_dict.get('address')
        self.city = event_dict.get('city') or None
        self.region = event_dict.get('region')
        self.date_str = event_dict.get('date')
        self.date = normalize_date(self.date_str)
        self.times = event_dict.get('times')
        self.cost = event_dict.get('cost')
        self.categories = list(event_dict.get('categories') or [])
        self.image_url = event_dict.get('imageUrl')
        self.url = event_dict.get('url')
        self.recurrence = event_dict.get('recurrence')
        self.end_date = normalize_date(event_dict.get('endDate'))
        self.created_by = event_dict.get('createdBy')
        self.created_by_name = event_dict.get('createdByName')

        # Coordinates arrive as {lat, lng}; out of range values are dropped
        coords = event_dict.get('coordinates')
        if coords is None and 'latitude' in event_dict and 'longitude' in event_dict:
            coords = {'lat': event_dict['latitude'], 'lng': event_dict['longitude']}
        self.coordinates = None
        try:
            coordinate = Coordinate.from_dict(coords)
        except (TypeError, ValueError):
            coordinate = None
        if coordinate is not None:
            if coordinate.is_valid():
                self.coordinates = coordinate
            else:
                logging.warning(f"Ignoring out of range coordinates for event '{self.id}': {coords}")

    @classmethod
    def from_dict(cls, event_dict: Dict[str, Any]) -> 'Event':
        return cls(event_dict)

    @property
    def has_coordinates(self) -> bool:
        return self.coordinates is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the event back to the event source's dictionary shape"""
        event_dict = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "date": self.date,
            "categories": list(self.categories),
        }
        if self.coordinates:
            event_dict["coordinates"] = {"lat": self.coordinates.lat, "lng": self.coordinates.lng}

        optional = {
            "address": self.address,
            "city": self.city,
            "region": self.region,
            "times": self.times,
            "cost": self.cost,
            "imageUrl": self.image_url,
            "url": self.url,
            "recurrence": self.recurrence,
            "endDate": self.end_date,
            "createdBy": self.created_by,
            "createdByName": self.created_by_name,
        }
        for key, value in optional.items():
            if value is not None:
                event_dict[key] = value
        return event_dict

    def __str__(self):
        """String representation of the event."""
        return f"Event({self.id}, {self.title}, {self.date})"

    def __repr__(self):
        return self.__str__()


def load_events(path: str) -> List[Event]:
    """Read a JSON array of event dictionaries from disk."""
    with open(path, 'r') as f:
        events_data = json.load(f)

    if not isinstance(events_data, list):
        raise ValueError(f"Expected a JSON array of events in {path}")

    events = []
    for event_data in events_data:
        if not isinstance(event_data, dict) or not event_data.get('id'):
            logging.warning(f"Skipping event without an id: {event_data}")
            continue
        events.append(Event(event_data))
    logging.info(f"Loaded {len(events)} events from {path}")
    return events
