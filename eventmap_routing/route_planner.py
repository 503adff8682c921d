import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional

from .config import Config
from .directions_client import DirectionsClient
from .errors import (EventMapError, GeolocationError, InvalidTransitionError,
                     ValidationError)
from .event import Coordinate, Event
from .formatting import format_distance, format_duration
from .geocode_client import GeocodeClient, GeocodeResult
from .proximity import NearestNeighborOrderer, RouteOrderer, located, nearest_events
from .requests_state import RequestTracker
from .route import DRIVING, TRANSPORT_MODES, RouteRequest, RouteResult

MIN_SELECTED_EVENTS = 2


class WizardStep(Enum):
    CHOOSING_LOCATION = "location"
    SELECTING_EVENTS = "events"
    CHOOSING_TRANSPORT = "transport"
    SHOWING_ROUTE = "route"


class Candidate:
    """A nearby event offered in the selection step."""

    def __init__(self, event: Event, distance: float):
        self.event = event
        self.distance = distance  # meters from the start location

    def __repr__(self):
        return f"Candidate({self.event.id}, {self.distance:.0f}m)"


class PendingRoute:
    def __init__(self, request_id: int, route_request: RouteRequest, ordered_events: List[Event]):
        self.request_id = request_id
        self.route_request = route_request
        self.ordered_events = ordered_events


def events_key(events: Iterable[Event]) -> str:
    """Order-independent identity of an event set."""
    return ",".join(sorted(str(event.id) for event in events))


class RoutePlanner:
    """
    The "plan an event route" wizard.

    Steps: choose a starting point, pick nearby events, pick a transport mode,
    show the route. Each asynchronous call (geolocation, geocoding, directions)
    is split into a ``begin``/``request`` half that returns a request id and a
    completion half that takes it back; completions whose id is no longer
    current are ignored. ``lookup_address`` and ``generate_route`` run both
    halves synchronously through the clients.

    Failures never leave the current step and never erase earlier choices.
    """

    def __init__(self, events: Iterable[Event], user_location: Optional[Coordinate] = None,
                 geocode_client: Optional[GeocodeClient] = None,
                 directions_client: Optional[DirectionsClient] = None,
                 orderer: Optional[RouteOrderer] = None,
                 nearby_limit: Optional[int] = None,
                 on_user_location: Optional[Callable[[Coordinate], None]] = None):
        self.events = located(events)
        self._events_key = events_key(self.events)
        self.geocode_client = geocode_client or GeocodeClient()
        self.directions_client = directions_client or DirectionsClient()
        self.orderer = orderer or NearestNeighborOrderer()
        self.nearby_limit = nearby_limit if nearby_limit is not None else Config.NEARBY_EVENT_LIMIT
        self.on_user_location = on_user_location

        self.geolocation = RequestTracker("geolocation")
        self.geocoding = RequestTracker("geocode")
        self.directions = RequestTracker("directions")

        self.is_open = False
        self.user_location = user_location
        self.route = None
        self._reset(start_location=user_location)

    def _reset(self, start_location=None):
        self.step = WizardStep.CHOOSING_LOCATION
        self.start_location = start_location
        self.location_error = None
        self.route_error = None
        self.candidates = []
        self.selected_ids = set()
        self.transport_mode = DRIVING
        self._pending_route = None
        self.geolocation.invalidate()
        self.geocoding.invalidate()
        self.directions.invalidate()

    def _require(self, *steps):
        if self.step not in steps:
            allowed = ", ".join(step.value for step in steps)
            raise InvalidTransitionError(f"Action not allowed in step '{self.step.value}' (expected {allowed})")

    # Panel visibility

    def open(self):
        """Show the panel. An existing route is shown again."""
        self.is_open = True
        if self.route is not None:
            self.step = WizardStep.SHOWING_ROUTE

    def close(self):
        """Hide the panel, keeping the computed route."""
        self.is_open = False

    def update_events(self, events: Iterable[Event]) -> bool:
        """
        Swap in a new event set (e.g. after the date filter changed).

        A different set discards any in-progress plan and the current route.
        Returns True when the planner was reset.
        """
        new_events = located(events)
        new_key = events_key(new_events)
        if new_key == self._events_key:
            return False
        logging.info(f"Event set changed ({len(self.events)} -> {len(new_events)} events); resetting route planner")
        self.events = new_events
        self._events_key = new_key
        self.route = None
        self._reset(start_location=self.start_location)
        return True

    # Step 1: choosing a starting point

    def request_geolocation(self) -> Optional[int]:
        """Start a device location request. Returns None while one is already pending."""
        self._require(WizardStep.CHOOSING_LOCATION)
        if self.geolocation.pending:
            return None
        self.location_error = None
        return self.geolocation.begin()

    def on_geolocation_success(self, request_id: int, latitude: float, longitude: float) -> bool:
        location = Coordinate(longitude, latitude)
        if not self.geolocation.settle(request_id, result=location):
            return False
        self.user_location = location
        if self.on_user_location:
            self.on_user_location(location)
        self._start_from(location)
        return True

    def on_geolocation_error(self, request_id: int, reason: str) -> bool:
        error = GeolocationError(reason)
        if not self.geolocation.settle(request_id, error=error):
            return False
        logging.info(f"Geolocation failed: {reason}")
        self.location_error = error.message
        return True

    def begin_address_lookup(self, address: str) -> Optional[int]:
        """Start geocoding ``address``. Returns None when blank or already pending."""
        self._require(WizardStep.CHOOSING_LOCATION)
        if not address or not address.strip():
            self.location_error = "Please enter an address"
            return None
        if self.geocoding.pending:
            return None
        self.location_error = None
        return self.geocoding.begin()

    def complete_address_lookup(self, request_id: int, result: Optional[GeocodeResult] = None,
                                error: Optional[EventMapError] = None) -> bool:
        if not self.geocoding.settle(request_id, result=result, error=error):
            return False
        if error is not None or result is None:
            self.location_error = error.message if error is not None else "Failed to lookup address"
            return True
        self._start_from(result.coordinate)
        return True

    def lookup_address(self, address: str, city: Optional[str] = None) -> bool:
        """Geocode ``address`` and move on to event selection. Returns True on success."""
        request_id = self.begin_address_lookup(address)
        if request_id is None:
            return False
        try:
            result = self.geocode_client.geocode(address.strip(), city.strip() if city else None)
        except EventMapError as e:
            self.complete_address_lookup(request_id, error=e)
            return False
        self.complete_address_lookup(request_id, result=result)
        return self.step == WizardStep.SELECTING_EVENTS

    def _start_from(self, location: Coordinate):
        self.start_location = location
        self.location_error = None
        self.geolocation.invalidate()
        self.geocoding.invalidate()
        self.candidates = [Candidate(event, dist)
                           for event, dist in nearest_events(location, self.events, self.nearby_limit)]
        self.selected_ids = {candidate.event.id for candidate in self.candidates}
        self.step = WizardStep.SELECTING_EVENTS
        logging.info(f"Route start set to {location}; {len(self.candidates)} nearby events")

    # Step 2: selecting events

    def toggle_event(self, event_id) -> bool:
        """Flip an event's membership. Returns whether it is now selected."""
        self._require(WizardStep.SELECTING_EVENTS)
        if event_id not in {candidate.event.id for candidate in self.candidates}:
            raise KeyError(f"Event {event_id} is not a nearby candidate")
        if event_id in self.selected_ids:
            self.selected_ids.discard(event_id)
            return False
        self.selected_ids.add(event_id)
        return True

    @property
    def selected_events(self) -> List[Event]:
        return [c.event for c in self.candidates if c.event.id in self.selected_ids]

    @property
    def can_choose_transport(self) -> bool:
        return len(self.selected_events) >= MIN_SELECTED_EVENTS

    def advance_to_transport(self) -> bool:
        """Move to transport selection; refused with fewer than two selected events."""
        self._require(WizardStep.SELECTING_EVENTS)
        if not self.can_choose_transport:
            logging.info(f"Need at least {MIN_SELECTED_EVENTS} selected events, have {len(self.selected_events)}")
            return False
        self.route_error = None
        self.step = WizardStep.CHOOSING_TRANSPORT
        return True

    def back_to_location(self):
        self._require(WizardStep.SELECTING_EVENTS)
        self.step = WizardStep.CHOOSING_LOCATION

    # Step 3: choosing transport

    def choose_transport(self, mode: str):
        self._require(WizardStep.CHOOSING_TRANSPORT)
        if mode not in TRANSPORT_MODES:
            raise ValidationError("Invalid profile. Must be walking, cycling, or driving")
        self.transport_mode = mode

    def back_to_events(self):
        self._require(WizardStep.CHOOSING_TRANSPORT)
        self.directions.invalidate()
        self._pending_route = None
        self.step = WizardStep.SELECTING_EVENTS

    def begin_route(self) -> Optional[PendingRoute]:
        """
        Order the selected stops and build the directions request.

        Returns None while a directions request is already pending.
        """
        self._require(WizardStep.CHOOSING_TRANSPORT)
        if self.start_location is None or not self.can_choose_transport:
            raise InvalidTransitionError("A start location and at least two events are required")
        if self.directions.pending:
            return None

        ordered = self.orderer.order(self.start_location, self.selected_events)
        coordinates = [self.start_location] + [event.coordinates for event in ordered]
        route_request = RouteRequest(coordinates, self.transport_mode)
        self.route_error = None
        self._pending_route = PendingRoute(self.directions.begin(), route_request, ordered)
        return self._pending_route

    def complete_route(self, request_id: int, result: Optional[RouteResult] = None,
                       error: Optional[EventMapError] = None) -> bool:
        if not self.directions.settle(request_id, result=result, error=error):
            return False
        pending, self._pending_route = self._pending_route, None
        if error is not None or result is None:
            self.route_error = error.message if error is not None else "Failed to generate route"
            logging.info(f"Route generation failed: {self.route_error}")
            return True
        result.events = list(pending.ordered_events)
        result.profile = pending.route_request.profile
        self.route = result
        self.step = WizardStep.SHOWING_ROUTE
        return True

    def generate_route(self) -> bool:
        """Request directions for the selected stops. Returns True when a route is shown."""
        pending = self.begin_route()
        if pending is None:
            return False
        try:
            result = self.directions_client.get_directions(pending.route_request)
        except EventMapError as e:
            self.complete_route(pending.request_id, error=e)
            return False
        self.complete_route(pending.request_id, result=result)
        return self.step == WizardStep.SHOWING_ROUTE

    # Step 4: showing the route

    def clear_route(self):
        """Drop the route and start over from the last known device location."""
        self.route = None
        self._reset(start_location=self.user_location)

    def modify_route(self):
        """Back to event selection, keeping the start point and selection."""
        self._require(WizardStep.SHOWING_ROUTE)
        self.step = WizardStep.SELECTING_EVENTS

    def itinerary(self) -> List[dict]:
        """Stops in visiting order with the leg that reaches each one."""
        if self.route is None:
            return []
        stops = []
        for index, event in enumerate(self.route.events):
            leg = self.route.legs[index] if index < len(self.route.legs) else None
            stops.append({
                "order": index + 1,
                "event": event,
                "distance": format_distance(leg.distance) if leg else None,
                "duration": format_duration(leg.duration) if leg else None,
            })
        return stops

    def summary(self) -> Optional[dict]:
        if self.route is None:
            return None
        return {
            "distance": format_distance(self.route.distance),
            "duration": format_duration(self.route.duration),
            "stops": len(self.route.events),
            "mode": self.route.profile,
        }
