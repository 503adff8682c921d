"""
Event Map Routing

Spatial event browsing for a regional community calendar: date filtering,
map clustering, proximity ranking, and a step-by-step route planner that
sequences nearby events and asks a directions service for the trip.

Example:
    from eventmap_routing.event import Event, Coordinate
    from eventmap_routing.route_planner import RoutePlanner

    events = [Event(d) for d in loaded_event_dicts]
    planner = RoutePlanner(events)
    planner.lookup_address("1 E Edenton St", city="Raleigh")
    planner.advance_to_transport()
    planner.choose_transport("walking")
    planner.generate_route()
    print(planner.summary())
"""

from .event import Event, Coordinate
from .event_index import EventIndex
from .clusterer import HierarchicalClusterer
from .route_planner import RoutePlanner, WizardStep
