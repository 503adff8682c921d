"""
Map marker clustering.

Events sharing a rounded coordinate become one marker with a count. Markers
are then merged level by level, from the deepest zoom up to zoom 0: at each
level every marker absorbs the unclaimed markers within ``radius`` pixels of
it, and the merged cluster sits at the count-weighted centroid. Queries pick
the level for the current zoom and return what falls inside the viewport.

The index is rebuilt from scratch on every call to ``compute_clusters``;
for a few thousand events that is fast enough.
"""
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from .config import Config
from .event import Coordinate, Event

COORD_PRECISION = 5
MAX_LATITUDE = 85.0511287798

Bounds = Tuple[float, float, float, float]  # (west, south, east, north)


def lng_to_x(lng):
    return lng / 360 + 0.5


def lat_to_y(lat):
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    sin = math.sin(lat * math.pi / 180)
    y = 0.5 - 0.25 * math.log((1 + sin) / (1 - sin)) / math.pi
    return min(max(y, 0.0), 1.0)


def x_to_lng(x):
    return (x - 0.5) * 360


def y_to_lat(y):
    y2 = (180 - y * 360) * math.pi / 180
    return 360 * math.atan(math.exp(y2)) / math.pi - 90


class Cluster:
    """
    One marker on the map.

    ``cluster_id`` is set only for merged clusters; a plain marker may still
    hold several events when they share a coordinate.
    """

    def __init__(self, coordinate: Coordinate, events: List[Event], cluster_id=None, expansion_zoom=None):
        self.coordinate = coordinate
        self.events = events
        self.cluster_id = cluster_id
        self.expansion_zoom = expansion_zoom

    @property
    def count(self) -> int:
        return len(self.events)

    @property
    def is_cluster(self) -> bool:
        return self.cluster_id is not None

    def __repr__(self):
        return f"Cluster({self.cluster_id}, {self.coordinate}, count={self.count})"


class _Node:
    def __init__(self, x, y, events, cluster_id=None, origin_zoom=None, children=None):
        self.x = x
        self.y = y
        self.events = events
        self.cluster_id = cluster_id
        self.origin_zoom = origin_zoom
        self.children = children or []
        self.zoom = math.inf
        self.parent_id = None

    @property
    def count(self):
        return len(self.events)


class Clusterer:
    """Turns located events plus a viewport into map markers."""

    def compute_clusters(self, points: Sequence[Event], bounds: Optional[Bounds], zoom: float) -> List[Cluster]:
        raise NotImplementedError

    def expansion_zoom(self, cluster: Cluster) -> Optional[int]:
        raise NotImplementedError


class HierarchicalClusterer(Clusterer):

    def __init__(self, radius=None, max_zoom=None, min_zoom=0, extent=None, max_expansion_zoom=None):
        self.radius = radius if radius is not None else Config.CLUSTER_RADIUS
        self.max_zoom = max_zoom if max_zoom is not None else Config.CLUSTER_MAX_ZOOM
        self.min_zoom = min_zoom
        self.extent = extent if extent is not None else Config.TILE_EXTENT
        self.max_expansion_zoom = max_expansion_zoom if max_expansion_zoom is not None else Config.MAP_MAX_ZOOM
        self._levels: Dict[int, List[_Node]] = {}
        self._clusters: Dict[int, _Node] = {}
        self._next_id = 0

    def load(self, points: Sequence[Event]):
        """Build every zoom level for ``points``. Events without coordinates are ignored."""
        self._levels = {}
        self._clusters = {}
        self._next_id = 0

        level = self._markers(points)
        self._levels[self.max_zoom + 1] = level
        for zoom in range(self.max_zoom, self.min_zoom - 1, -1):
            level = self._cluster(level, zoom)
            self._levels[zoom] = level
        logging.debug(f"Clustered {len(points)} events into {len(self._levels[self.min_zoom])} top-level markers")
        return self

    def _markers(self, points):
        by_coordinate = {}
        for event in points:
            if event.coordinates is None:
                continue
            key = (round(event.coordinates.lng, COORD_PRECISION), round(event.coordinates.lat, COORD_PRECISION))
            by_coordinate.setdefault(key, []).append(event)
        return [_Node(lng_to_x(lng), lat_to_y(lat), events) for (lng, lat), events in by_coordinate.items()]

    def _cluster(self, nodes: List[_Node], zoom: int) -> List[_Node]:
        r = self.radius / (self.extent * 2 ** zoom)
        grid = {}
        for idx, node in enumerate(nodes):
            grid.setdefault((math.floor(node.x / r), math.floor(node.y / r)), []).append(idx)

        result = []
        for node in nodes:
            if node.zoom <= zoom:
                continue
            node.zoom = zoom

            neighbors = []
            cx, cy = math.floor(node.x / r), math.floor(node.y / r)
            for gx in (cx - 1, cx, cx + 1):
                for gy in (cy - 1, cy, cy + 1):
                    for idx in grid.get((gx, gy), ()):
                        other = nodes[idx]
                        if other is node or other.zoom <= zoom:
                            continue
                        if (other.x - node.x) ** 2 + (other.y - node.y) ** 2 <= r * r:
                            neighbors.append((idx, other))

            if not neighbors:
                result.append(node)
                continue

            # Keep member order stable regardless of grid cell traversal
            neighbors.sort(key=lambda pair: pair[0])
            members = [node] + [other for _, other in neighbors]
            total = sum(member.count for member in members)
            wx = sum(member.x * member.count for member in members)
            wy = sum(member.y * member.count for member in members)
            events = [event for member in members for event in member.events]

            cluster = _Node(wx / total, wy / total, events,
                            cluster_id=self._next_id, origin_zoom=zoom, children=members)
            cluster.zoom = zoom
            self._next_id += 1
            for member in members:
                member.zoom = zoom
                member.parent_id = cluster.cluster_id
            self._clusters[cluster.cluster_id] = cluster
            result.append(cluster)
        return result

    def _level_for(self, zoom: float) -> List[_Node]:
        z = int(math.floor(zoom))
        z = max(self.min_zoom, min(z, self.max_zoom + 1))
        return self._levels.get(z, [])

    def get_clusters(self, bounds: Optional[Bounds], zoom: float) -> List[Cluster]:
        result = []
        for node in self._level_for(zoom):
            lng, lat = x_to_lng(node.x), y_to_lat(node.y)
            if bounds is not None and not _contains(bounds, lng, lat):
                continue
            coordinate = Coordinate(lng, lat)
            if node.cluster_id is None:
                # Unmerged markers sit exactly on their events
                coordinate = node.events[0].coordinates
                result.append(Cluster(coordinate, list(node.events)))
            else:
                result.append(Cluster(coordinate, list(node.events), node.cluster_id,
                                      self._expansion_zoom(node)))
        return result

    def compute_clusters(self, points: Sequence[Event], bounds: Optional[Bounds], zoom: float) -> List[Cluster]:
        return self.load(points).get_clusters(bounds, zoom)

    def _expansion_zoom(self, node: _Node) -> int:
        # The first zoom at which the cluster has split into several markers
        zoom = node.origin_zoom
        while True:
            zoom += 1
            if len(node.children) != 1 or node.children[0].cluster_id is None:
                break
            node = node.children[0]
        return min(zoom, self.max_expansion_zoom)

    def expansion_zoom(self, cluster: Cluster) -> Optional[int]:
        if cluster.cluster_id is None:
            return None
        node = self._clusters.get(cluster.cluster_id)
        if node is None:
            raise KeyError(f"Unknown cluster id: {cluster.cluster_id}")
        return self._expansion_zoom(node)

    def get_children(self, cluster: Cluster) -> List[Cluster]:
        """The markers a cluster splits into at its expansion zoom."""
        node = self._clusters.get(cluster.cluster_id)
        if node is None:
            raise KeyError(f"Unknown cluster id: {cluster.cluster_id}")
        children = []
        for child in node.children:
            if child.cluster_id is None:
                children.append(Cluster(child.events[0].coordinates, list(child.events)))
            else:
                children.append(Cluster(Coordinate(x_to_lng(child.x), y_to_lat(child.y)), list(child.events),
                                        child.cluster_id, self._expansion_zoom(child)))
        return children


def _contains(bounds: Bounds, lng: float, lat: float) -> bool:
    west, south, east, north = bounds
    if not south <= lat <= north:
        return False
    if east - west >= 360:
        return True
    west = ((west + 180) % 360) - 180
    east = ((east + 180) % 360) - 180
    if west <= east:
        return west <= lng <= east
    # Viewport crosses the antimeridian
    return lng >= west or lng <= east


def abbreviate_count(count: int) -> str:
    if count >= 10000:
        return f"{round(count / 1000)}k"
    if count >= 1000:
        return f"{round(count / 100) / 10:g}k"
    return str(count)


def events_to_geojson(events: Sequence[Event], selected_id=None) -> dict:
    """Point features for every located event."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [event.coordinates.lng, event.coordinates.lat]},
                "properties": {"id": event.id, "title": event.title, "selected": event.id == selected_id},
            }
            for event in events if event.coordinates is not None
        ],
    }


def clusters_to_geojson(clusters: Sequence[Cluster], selected_id=None) -> dict:
    features = []
    for cluster in clusters:
        geometry = {"type": "Point", "coordinates": [cluster.coordinate.lng, cluster.coordinate.lat]}
        if cluster.is_cluster:
            properties = {
                "cluster": True,
                "cluster_id": cluster.cluster_id,
                "point_count": cluster.count,
                "point_count_abbreviated": abbreviate_count(cluster.count),
                "expansion_zoom": cluster.expansion_zoom,
            }
        else:
            first = cluster.events[0]
            properties = {
                "id": first.id,
                "title": first.title,
                "count": cluster.count,
                "ids": [event.id for event in cluster.events],
                "selected": any(event.id == selected_id for event in cluster.events),
            }
        features.append({"type": "Feature", "geometry": geometry, "properties": properties})
    return {"type": "FeatureCollection", "features": features}
