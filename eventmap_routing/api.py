# api.py
# FastAPI app proxying geocoding and directions to the mapping provider

import logging
from typing import Any, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .directions_client import DirectionsClient
from .errors import EventMapError
from .geocode_client import GeocodeClient
from .route import RouteRequest


class GeocodeRequest(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None


class DirectionsRequest(BaseModel):
    # left loose so the client's validation produces the error messages
    coordinates: Optional[List[Any]] = None
    profile: Optional[str] = None


def create_app(geocode_client: Optional[GeocodeClient] = None,
               directions_client: Optional[DirectionsClient] = None) -> FastAPI:
    app = FastAPI(title="Event Map Routing API", version="0.1.0")
    app.state.geocode_client = geocode_client or GeocodeClient()
    app.state.directions_client = directions_client or DirectionsClient()

    # global JSON error handling
    # - EventMapError -> {"error": <message>, "code": <code>} with its status
    # - malformed body -> 400 {"error": "Invalid JSON body"}
    # - anything else -> 500 {"error": "Server error"}
    @app.exception_handler(EventMapError)
    async def event_map_error_handler(request: Request, exc: EventMapError):
        logging.warning("HTTP %s: %s", exc.status, exc.message)
        return JSONResponse(status_code=exc.status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def invalid_body_handler(request: Request, exc: RequestValidationError):
        logging.warning("Invalid request body: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid JSON body"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        # do not leak details to client
        logging.exception("Unhandled exception")
        return JSONResponse(status_code=500, content={"error": "Server error"})

    @app.post("/api/geocode")
    def geocode(req: GeocodeRequest):
        """Resolve an address (plus optional city/region) to a coordinate."""
        result = app.state.geocode_client.geocode(req.address or "", req.city, req.region)
        return result.to_dict()

    @app.post("/api/directions")
    def directions(req: DirectionsRequest):
        """Route through 2-25 coordinates for walking, cycling or driving."""
        route_request = RouteRequest.from_dict(req.model_dump())
        result = app.state.directions_client.get_directions(route_request)
        return result.to_response()

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


app = create_app()
