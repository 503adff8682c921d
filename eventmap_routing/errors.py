"""
Error types shared by the clients, the route wizard and the HTTP layer.

Every error carries an HTTP-style status and an optional provider code so the
same exception can be shown inline in the wizard or returned as JSON.
"""


class EventMapError(Exception):
    status = 500
    default_code = None

    def __init__(self, message, status=None, code=None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        self.code = code if code is not None else self.default_code

    def to_dict(self):
        body = {"error": self.message}
        if self.code:
            body["code"] = self.code
        return body


class ValidationError(EventMapError):
    """Input rejected before any network call."""
    status = 400


class ProviderConfigError(EventMapError):
    default_code = "config"


class AddressNotFoundError(EventMapError):
    status = 404
    default_code = "NotFound"


class NoRouteError(EventMapError):
    status = 404
    default_code = "NoRoute"


class ProviderError(EventMapError):
    default_code = "unknown"


GEOLOCATION_MESSAGES = {
    "permission-denied": "Location permission denied. Please enter an address instead.",
    "position-unavailable": "Location unavailable. Please enter an address instead.",
    "timeout": "Location request timed out. Please try again or enter an address.",
    "unsupported": "Geolocation is not supported by your browser",
}


class GeolocationError(EventMapError):
    status = 400

    def __init__(self, reason):
        message = GEOLOCATION_MESSAGES.get(
            reason, "Unable to get location. Please enter an address instead."
        )
        super().__init__(message, code=reason)
        self.reason = reason


class InvalidTransitionError(EventMapError):
    """A wizard action was attempted from a step that does not allow it."""
    status = 409
