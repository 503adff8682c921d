#!/usr/bin/env python3
import argparse
import json
import logging
import os
import sys

# Add the parent directory to the path so we can import the package
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from eventmap_routing.app_state import AppState
from eventmap_routing.config import Config
from eventmap_routing.errors import EventMapError
from eventmap_routing.event import Coordinate, load_events
from eventmap_routing.event_index import today_in_region
from eventmap_routing.formatting import format_date, format_distance
from eventmap_routing.geocode_client import GeocodeClient
from eventmap_routing.proximity import distance_between
from eventmap_routing.route import TRANSPORT_MODES
from eventmap_routing.route_planner import WizardStep


def setup_logging(debug=False):
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def parse_bounds(text):
    """'W,S,E,N' -> (west, south, east, north)"""
    parts = [float(p) for p in text.split(',')]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError("Bounds must be west,south,east,north")
    return tuple(parts)


def geocode_address(address, city=None, region=None):
    """Geocode a single address."""
    client = GeocodeClient()
    try:
        result = client.geocode(address, city, region)
    except EventMapError as e:
        print(f"❌ Failed to geocode address: {address} ({e})")
        return 1

    print(f"✅ Address successfully geocoded:")
    print(f"  📍 {result.full_address}")
    print(f"  🌐 Latitude: {result.coordinate.lat}")
    print(f"  🌐 Longitude: {result.coordinate.lng}")
    return 0


def show_nearby(state, lat, lng):
    """List the day's events by city, nearest first."""
    location = Coordinate(lng, lat)
    state.set_user_location(location)
    groups = state.grouped_events()
    if not groups:
        print(f"❌ No events on {format_date(state.selected_date)}")
        return 1

    print(f"📅 Events on {format_date(state.selected_date)}:")
    for city, events in groups:
        print(f"\n🏙️  {city}")
        for event in events:
            if event.coordinates:
                distance = format_distance(distance_between(location, event.coordinates))
            else:
                distance = "no location"
            print(f"  - {event.title} ({distance})")
    return 0


def show_clusters(state, zoom, bounds=None):
    """Print the markers for a viewport."""
    markers = state.markers(bounds, zoom)
    print(f"🗺️  {len(markers)} markers at zoom {zoom} on {state.selected_date}:")
    for marker in markers:
        c = marker.coordinate
        if marker.is_cluster:
            print(f"  ● cluster {marker.cluster_id}: {marker.count} events at ({c.lat:.5f}, {c.lng:.5f}), "
                  f"expands at zoom {marker.expansion_zoom}")
        else:
            titles = ", ".join(event.title for event in marker.events)
            print(f"  • {titles} at ({c.lat:.5f}, {c.lng:.5f})")
    return 0


def plan_route(state, mode, lat=None, lng=None, address=None, city=None, ids=None):
    """Run the route wizard end to end."""
    planner = state.planner
    planner.open()

    if address:
        if not planner.lookup_address(address, city):
            print(f"❌ {planner.location_error}")
            return 1
    else:
        request_id = planner.request_geolocation()
        planner.on_geolocation_success(request_id, lat, lng)

    if ids:
        for candidate in list(planner.candidates):
            if candidate.event.id not in ids:
                planner.toggle_event(candidate.event.id)

    if not planner.advance_to_transport():
        print(f"❌ Select at least two nearby events (found {len(planner.selected_events)})")
        return 1

    planner.choose_transport(mode)
    if not planner.generate_route():
        print(f"❌ {planner.route_error}")
        return 1

    summary = planner.summary()
    print(f"✅ Route planned ({summary['mode']}): {summary['distance']}, {summary['duration']}")
    for stop in planner.itinerary():
        print(f"  {stop['order']}. {stop['event'].title} (+{stop['distance']}, {stop['duration']})")
    return 0 if planner.step == WizardStep.SHOWING_ROUTE else 1


def serve(port):
    import uvicorn
    uvicorn.run("eventmap_routing.api:app", host="0.0.0.0", port=port)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Event Map Routing CLI - browse events by location and plan routes between them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Geocode an address
  ./main_cli.py geocode "1 E Edenton St" --city Raleigh

  # Events near a point, grouped by city
  ./main_cli.py nearby events.json --date 2025-06-01 --lat 35.78 --lng -78.64

  # Map markers for a viewport
  ./main_cli.py clusters events.json --date 2025-06-01 --zoom 9 --bounds -79.2,35.5,-78.2,36.2

  # Plan a walking route through nearby events
  ./main_cli.py route events.json --date 2025-06-01 --lat 35.78 --lng -78.64 --mode walking
        """
    )

    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Sub-command help')

    geocode_parser = subparsers.add_parser('geocode', help='Geocode an address')
    geocode_parser.add_argument('address', type=str, help='Address to geocode')
    geocode_parser.add_argument('--city', type=str, help='City')
    geocode_parser.add_argument('--region', type=str, help='Region or neighborhood')

    nearby_parser = subparsers.add_parser('nearby', help='List events nearest a point')
    nearby_parser.add_argument('events_file', type=str, help='JSON file with events data')
    nearby_parser.add_argument('--date', type=str, help='Day to show (YYYY-MM-DD), default today')
    nearby_parser.add_argument('--lat', type=float, required=True)
    nearby_parser.add_argument('--lng', type=float, required=True)

    clusters_parser = subparsers.add_parser('clusters', help='Show map markers for a viewport')
    clusters_parser.add_argument('events_file', type=str, help='JSON file with events data')
    clusters_parser.add_argument('--date', type=str, help='Day to show (YYYY-MM-DD), default today')
    clusters_parser.add_argument('--zoom', type=float, default=9)
    clusters_parser.add_argument('--bounds', type=parse_bounds, help='west,south,east,north')

    route_parser = subparsers.add_parser('route', help='Plan a route through nearby events')
    route_parser.add_argument('events_file', type=str, help='JSON file with events data')
    route_parser.add_argument('--date', type=str, help='Day to plan (YYYY-MM-DD), default today')
    route_parser.add_argument('--lat', type=float)
    route_parser.add_argument('--lng', type=float)
    route_parser.add_argument('--address', type=str, help='Start address instead of --lat/--lng')
    route_parser.add_argument('--city', type=str)
    route_parser.add_argument('--mode', choices=TRANSPORT_MODES, default='driving')
    route_parser.add_argument('--ids', nargs='+', help='Only visit these event ids')

    serve_parser = subparsers.add_parser('serve', help='Run the geocode/directions API')
    serve_parser.add_argument('--port', type=int, default=Config.PORT)

    args = parser.parse_args()
    setup_logging(args.debug or Config.DEBUG)

    if args.command == 'geocode':
        return geocode_address(args.address, args.city, args.region)
    if args.command == 'serve':
        return serve(args.port)
    if args.command not in ('nearby', 'clusters', 'route'):
        parser.print_help()
        return 0

    try:
        events = load_events(args.events_file)
    except FileNotFoundError:
        print(f"❌ Events file not found: {args.events_file}")
        return 1
    except (json.JSONDecodeError, ValueError) as e:
        print(f"❌ Invalid events file {args.events_file}: {e}")
        return 1

    state = AppState(events, args.date or today_in_region())

    if args.command == 'nearby':
        return show_nearby(state, args.lat, args.lng)
    if args.command == 'clusters':
        return show_clusters(state, args.zoom, args.bounds)

    if not args.address and (args.lat is None or args.lng is None):
        parser.error("route needs --address or both --lat and --lng")
    try:
        return plan_route(state, args.mode, args.lat, args.lng, args.address, args.city, args.ids)
    except EventMapError as e:
        print(f"❌ Error planning route: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
