import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

class Config:
    """
    Configuration class for the event map.
    Values come from environment variables or fall back to the Triangle-region defaults.
    """
    # General configuration
    DEBUG = os.environ.get('DEBUG', 'False') == 'True'
    PORT = int(os.environ.get('PORT', 5000))

    # Event dates are calendar days in this timezone
    TIMEZONE = os.environ.get('TIMEZONE', 'America/New_York')

    # Mapping provider
    MAPBOX_TOKEN = os.environ.get('MAPBOX_TOKEN', '')
    GEOCODE_URL = os.environ.get('GEOCODE_URL', 'https://api.mapbox.com/search/geocode/v6/forward')
    DIRECTIONS_URL = os.environ.get('DIRECTIONS_URL', 'https://api.mapbox.com/directions/v5/mapbox')
    REQUEST_TIMEOUT = float(os.environ.get('REQUEST_TIMEOUT', 10))

    # Geocoding bias for the 919 area
    REGION_STATE = os.environ.get('REGION_STATE', 'NC')
    REGION_COUNTRY = os.environ.get('REGION_COUNTRY', 'US')
    REGION_ANCHOR_LNG = float(os.environ.get('REGION_ANCHOR_LNG', -78.6382))
    REGION_ANCHOR_LAT = float(os.environ.get('REGION_ANCHOR_LAT', 35.7796))

    # Route wizard
    NEARBY_EVENT_LIMIT = int(os.environ.get('NEARBY_EVENT_LIMIT', 10))

    # Map clustering
    CLUSTER_RADIUS = int(os.environ.get('CLUSTER_RADIUS', 50))
    CLUSTER_MAX_ZOOM = int(os.environ.get('CLUSTER_MAX_ZOOM', 14))
    MAP_MAX_ZOOM = int(os.environ.get('MAP_MAX_ZOOM', 20))
    TILE_EXTENT = 512
