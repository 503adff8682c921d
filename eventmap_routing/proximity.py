"""
Distance ranking and stop ordering.

All distances are meters. Rounding and unit conversion happen only in
``formatting``.
"""
import math
from typing import Iterable, List, Optional, Tuple

from .event import Coordinate, Event

EARTH_RADIUS_M = 6371000.0


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate the great-circle distance in meters between two points on Earth.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)
    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def distance_between(a: Coordinate, b: Coordinate) -> float:
    return haversine_distance(a.lat, a.lng, b.lat, b.lng)


def located(events: Iterable[Event]) -> List[Event]:
    """Events that can take part in spatial operations."""
    return [event for event in events if event.coordinates is not None]


def rank_by_proximity(reference: Coordinate, events: Iterable[Event]) -> List[Tuple[Event, float]]:
    """
    Return ``(event, meters)`` pairs sorted nearest first.

    The input is left untouched. ``sorted`` is stable, so equal distances keep
    their input order.
    """
    pairs = [(event, distance_between(reference, event.coordinates)) for event in located(events)]
    return sorted(pairs, key=lambda pair: pair[1])


def sort_by_proximity(reference: Coordinate, events: Iterable[Event]) -> List[Event]:
    return [event for event, _ in rank_by_proximity(reference, events)]


def nearest_events(reference: Coordinate, events: Iterable[Event], limit: int) -> List[Tuple[Event, float]]:
    """The ``limit`` closest events to ``reference`` with their distances."""
    if limit <= 0:
        return []
    return rank_by_proximity(reference, events)[:limit]


def nearest_distance(reference: Coordinate, events: Iterable[Event]) -> Optional[float]:
    """Distance to the closest located event, or None when none is located."""
    ranked = rank_by_proximity(reference, events)
    return ranked[0][1] if ranked else None


class RouteOrderer:
    """
    Decides the visiting order of selected stops.

    The route wizard only depends on this interface, so a better tour builder
    (2-opt, exact solver) can replace the greedy one without touching it.
    """

    def order(self, start: Coordinate, stops: List[Event]) -> List[Event]:
        raise NotImplementedError


class NearestNeighborOrderer(RouteOrderer):
    """
    Greedy nearest-neighbor ordering.

    From the current position, always walk to the closest unvisited stop. This
    is a heuristic: there is no backtracking and no 2-opt pass, so the tour can
    be noticeably longer than optimal. Ties go to the stop that came first in
    the input.
    """

    def order(self, start: Coordinate, stops: List[Event]) -> List[Event]:
        remaining = located(stops)
        ordered = []
        current = start

        while remaining:
            nearest_idx = 0
            nearest_dist = math.inf
            for idx, stop in enumerate(remaining):
                dist = distance_between(current, stop.coordinates)
                if dist < nearest_dist:
                    nearest_dist = dist
                    nearest_idx = idx
            nearest = remaining.pop(nearest_idx)
            ordered.append(nearest)
            current = nearest.coordinates

        return ordered


def order_by_nearest_neighbor(start: Coordinate, stops: List[Event]) -> List[Event]:
    return NearestNeighborOrderer().order(start, stops)
