import logging
from typing import Optional

import requests

from .config import Config
from .errors import (AddressNotFoundError, ProviderConfigError, ProviderError,
                     ValidationError)
from .event import Coordinate


class GeocodeResult:
    def __init__(self, coordinate: Coordinate, full_address: str):
        self.coordinate = coordinate
        self.full_address = full_address

    def to_dict(self):
        return {
            "latitude": self.coordinate.lat,
            "longitude": self.coordinate.lng,
            "fullAddress": self.full_address,
        }

    def __repr__(self):
        return f"GeocodeResult({self.coordinate}, {self.full_address!r})"


class GeocodeClient:
    """
    Forward geocoding against the Mapbox v6 endpoint.

    Queries get the regional state appended and are biased toward the regional
    anchor point. Only the first feature is used.
    """

    def __init__(self, token=None, url=None, timeout=None):
        self.token = Config.MAPBOX_TOKEN if token is None else token
        self.url = url or Config.GEOCODE_URL
        self.timeout = timeout or Config.REQUEST_TIMEOUT
        self.geocode_cache = {}  # key: search query, value: GeocodeResult
        self._config_error_reported = False

    def build_query(self, address: str, city: Optional[str] = None, region: Optional[str] = None) -> str:
        parts = [address.strip()]
        for extra in (city, region):
            if extra and extra.strip():
                parts.append(extra.strip())
        parts.append(Config.REGION_STATE)
        return ", ".join(parts)

    def geocode(self, address: str, city: Optional[str] = None, region: Optional[str] = None) -> GeocodeResult:
        """
        Resolve an address to a coordinate.

        Raises ValidationError for a blank address, ProviderConfigError when no
        token is configured, AddressNotFoundError for zero results and
        ProviderError for anything the provider or the network gets wrong.
        """
        if not address or not address.strip():
            logging.warning("Empty address provided for geocoding")
            raise ValidationError("Address is required")

        if not self.token:
            if not self._config_error_reported:
                logging.error("Mapbox token not configured; geocoding disabled")
                self._config_error_reported = True
            raise ProviderConfigError("Mapbox token not configured")

        query = self.build_query(address, city, region)
        if query in self.geocode_cache:
            logging.info("Cache hit for address '%s'", query)
            return self.geocode_cache[query]

        params = {
            "q": query,
            "access_token": self.token,
            "limit": 1,
            "proximity": f"{Config.REGION_ANCHOR_LNG},{Config.REGION_ANCHOR_LAT}",
            "country": Config.REGION_COUNTRY,
        }

        try:
            response = requests.get(self.url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logging.error("Exception during geocoding: %s", e)
            raise ProviderError("Failed to geocode address") from e

        if response.status_code != 200:
            logging.error("Mapbox geocoding failed: %s %s", response.status_code, response.text[:200])
            raise ProviderError("Geocoding service error")

        try:
            data = response.json()
        except ValueError as e:
            logging.error("Invalid geocoding response: %s", e)
            raise ProviderError("Failed to geocode address") from e

        features = data.get("features") or []
        if not features:
            logging.info("No geocoding result for address: %s", query)
            raise AddressNotFoundError("Address not found")

        feature = features[0]
        try:
            lng, lat = feature["geometry"]["coordinates"][:2]
            coordinate = Coordinate(lng, lat)
        except (KeyError, TypeError, ValueError) as e:
            logging.error("Malformed geocoding feature: %s", e)
            raise ProviderError("Failed to geocode address") from e

        properties = feature.get("properties") or {}
        full_address = properties.get("full_address") or properties.get("name") or query

        result = GeocodeResult(coordinate, full_address)
        logging.info("Geocoded address '%s' to lat: %s, lon: %s", query, coordinate.lat, coordinate.lng)
        self.geocode_cache[query] = result
        return result
