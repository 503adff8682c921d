from typing import Any, Dict, List

from .errors import ValidationError
from .event import Coordinate, Event, is_valid_coordinate

WALKING = "walking"
CYCLING = "cycling"
DRIVING = "driving"
TRANSPORT_MODES = (WALKING, CYCLING, DRIVING)

MIN_COORDINATES = 2
MAX_COORDINATES = 25


class RouteRequest:
    """Ordered coordinates (start first) and a transport mode."""

    def __init__(self, coordinates: List[Coordinate], profile: str):
        self.coordinates = list(coordinates)
        self.profile = profile

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RouteRequest':
        """
        Build a request from the ``{coordinates: [{lng, lat}], profile}`` body.

        Raises ValidationError with the message the directions endpoint returns.
        """
        profile = data.get("profile")
        if profile not in TRANSPORT_MODES:
            raise ValidationError("Invalid profile. Must be walking, cycling, or driving")

        raw = data.get("coordinates")
        if not isinstance(raw, list) or len(raw) < MIN_COORDINATES:
            raise ValidationError("At least 2 coordinates are required")
        if len(raw) > MAX_COORDINATES:
            raise ValidationError("Maximum 25 coordinates allowed")

        coordinates = []
        for item in raw:
            lng = item.get("lng") if isinstance(item, dict) else None
            lat = item.get("lat") if isinstance(item, dict) else None
            if not (_is_number(lng) and _is_number(lat)):
                raise ValidationError("Each coordinate must have lng and lat as numbers")
            if not is_valid_coordinate(lng, lat):
                raise ValidationError("Coordinates out of valid range")
            coordinates.append(Coordinate(lng, lat))
        return cls(coordinates, profile)

    def validate(self):
        """Check count, mode and ranges. Raises ValidationError."""
        RouteRequest.from_dict(self.to_dict())
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {"coordinates": [c.to_dict() for c in self.coordinates], "profile": self.profile}

    def coordinate_path(self) -> str:
        """Provider path segment: ``lng,lat;lng,lat;...``"""
        return ";".join(f"{c.lng},{c.lat}" for c in self.coordinates)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class RouteLeg:
    def __init__(self, distance: float, duration: float):
        self.distance = float(distance)  # meters
        self.duration = float(duration)  # seconds

    def to_dict(self):
        return {"distance": self.distance, "duration": self.duration}

    def __repr__(self):
        return f"RouteLeg({self.distance}, {self.duration})"


class RouteResult:
    """
    A computed route: totals, one leg per hop and the line geometry.

    ``events`` holds the stops in visiting order once the wizard attaches them.
    """

    def __init__(self, distance, duration, legs: List[RouteLeg], geometry: Dict[str, Any], events: List[Event] = None,
                 profile: str = None):
        self.distance = float(distance)
        self.duration = float(duration)
        self.legs = legs
        self.geometry = geometry
        self.events = list(events or [])
        self.profile = profile

    @classmethod
    def from_provider(cls, route: Dict[str, Any]) -> 'RouteResult':
        legs = [RouteLeg(leg.get("distance", 0), leg.get("duration", 0)) for leg in route.get("legs", [])]
        return cls(route.get("distance", 0), route.get("duration", 0), legs, route.get("geometry"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "geometry": self.geometry,
            "distance": self.distance,
            "duration": self.duration,
            "legs": [leg.to_dict() for leg in self.legs],
        }

    def to_response(self) -> Dict[str, Any]:
        """The simplified directions response returned to the browser."""
        return {"routes": [self.to_dict()], "code": "Ok"}

    def __repr__(self):
        return f"RouteResult({self.distance:.0f}m, {self.duration:.0f}s, legs={len(self.legs)})"


def route_feature(result: RouteResult) -> Dict[str, Any]:
    """GeoJSON Feature for drawing the route line."""
    return {"type": "Feature", "properties": {}, "geometry": result.geometry}
