import logging
from typing import Iterable, List, Optional, Tuple

from .clusterer import Bounds, Cluster, Clusterer, HierarchicalClusterer, clusters_to_geojson
from .event import Coordinate, Event
from .event_index import EventIndex
from .route import route_feature
from .route_planner import RoutePlanner


class AppState:
    """
    Everything the map view needs, held in one object and passed explicitly.

    Owns the event index (with the selected day), the selected event, the last
    known device location, the clusterer and the route planner. Changing the
    day pushes the new event set into the planner, which resets itself when
    the set differs.
    """

    def __init__(self, events: Iterable[Event], selected_date: Optional[str] = None,
                 planner: Optional[RoutePlanner] = None, clusterer: Optional[Clusterer] = None):
        self.index = EventIndex(events, selected_date)
        self.selected_event = None
        self.user_location = None
        self.clusterer = clusterer or HierarchicalClusterer()
        self.planner = planner or RoutePlanner(self.index.located_for_date())
        self.planner.on_user_location = self.set_user_location
        if planner is not None:
            self.planner.update_events(self.index.located_for_date())

    @property
    def selected_date(self) -> str:
        return self.index.selected_date

    @property
    def visible_events(self) -> List[Event]:
        return self.index.for_date()

    def set_date(self, selected_date: str):
        self.index.set_date(selected_date)
        self._after_date_change()

    def change_date(self, days: int):
        self.index.change_date(days)
        self._after_date_change()

    def _after_date_change(self):
        visible = self.visible_events
        if self.selected_event is not None and self.selected_event not in visible:
            logging.debug(f"Clearing selection {self.selected_event.id}; not on {self.selected_date}")
            self.selected_event = None
        self.planner.update_events(visible)

    def select_event(self, event_id) -> Optional[Event]:
        """Select a visible event by id; None (or an unknown id) clears the selection."""
        self.selected_event = None
        if event_id is not None:
            for event in self.visible_events:
                if event.id == event_id:
                    self.selected_event = event
                    break
        return self.selected_event

    def set_user_location(self, location: Coordinate):
        self.user_location = location
        if self.planner.user_location != location:
            self.planner.user_location = location

    def grouped_events(self) -> List[Tuple[str, List[Event]]]:
        """The day's events by city, nearest first when the user location is known."""
        return self.index.grouped(self.user_location)

    def markers(self, bounds: Optional[Bounds], zoom: float) -> List[Cluster]:
        return self.clusterer.compute_clusters(self.index.located_for_date(), bounds, zoom)

    def map_data(self, bounds: Optional[Bounds], zoom: float) -> dict:
        """GeoJSON for the marker layer and, if planned, the route line."""
        selected_id = self.selected_event.id if self.selected_event else None
        data = {"markers": clusters_to_geojson(self.markers(bounds, zoom), selected_id)}
        if self.planner.route is not None:
            data["route"] = route_feature(self.planner.route)
        return data
