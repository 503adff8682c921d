import logging
from typing import List

import requests

from .config import Config
from .errors import NoRouteError, ProviderConfigError, ProviderError, ValidationError
from .event import Coordinate
from .route import RouteRequest, RouteResult


class DirectionsClient:
    """
    Multi-stop routing against the Mapbox Directions API.

    Requests ask for full GeoJSON geometry without turn-by-turn steps. When the
    provider returns alternates, only the first route is kept.
    """

    def __init__(self, token=None, url=None, timeout=None):
        self.token = Config.MAPBOX_TOKEN if token is None else token
        self.url = (url or Config.DIRECTIONS_URL).rstrip("/")
        self.timeout = timeout or Config.REQUEST_TIMEOUT

    def get_route(self, coordinates: List[Coordinate], profile: str) -> RouteResult:
        return self.get_directions(RouteRequest(coordinates, profile))

    def get_directions(self, route_request: RouteRequest) -> RouteResult:
        """
        Validate ``route_request`` and fetch its route.

        Raises ValidationError before any network call for a bad request,
        NoRouteError when the provider finds no route and ProviderError for
        every other provider or network failure.
        """
        try:
            route_request.validate()
        except ValidationError as e:
            logging.warning("Rejected directions request: %s", e)
            raise

        if not self.token:
            logging.error("Mapbox token not configured; directions disabled")
            raise ProviderConfigError("Mapbox token not configured")

        url = f"{self.url}/{route_request.profile}/{route_request.coordinate_path()}"
        params = {
            "access_token": self.token,
            "geometries": "geojson",
            "overview": "full",
            "steps": "false",
        }

        logging.info(f"Requesting {route_request.profile} directions for {len(route_request.coordinates)} coordinates")
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logging.error("Exception requesting directions: %s", e)
            raise ProviderError("Failed to get directions") from e

        if response.status_code != 200:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            if not isinstance(error_data, dict):
                error_data = {}
            logging.error("Mapbox Directions API error: %s %s", response.status_code, error_data)
            raise ProviderError(
                error_data.get("message") or "Directions service error",
                status=response.status_code,
                code=error_data.get("code") or "unknown",
            )

        try:
            data = response.json()
        except ValueError as e:
            logging.error("Invalid directions response: %s", e)
            raise ProviderError("Failed to get directions") from e

        routes = data.get("routes") or []
        if data.get("code") != "Ok" or not routes:
            logging.info("No route found: %s", data.get("code"))
            raise NoRouteError(data.get("message") or "No route found", code=data.get("code") or "NoRoute")

        result = RouteResult.from_provider(routes[0])
        logging.info(f"Route found: {result.distance:.0f} m, {result.duration:.0f} s, {len(result.legs)} legs")
        return result
