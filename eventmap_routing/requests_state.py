"""
Identity tracking for single in-flight requests.

Each kind of request (geolocation, geocode, directions) goes through
Idle -> Pending(request_id) -> Settled(result, request_id). A result is applied
only when its request id is still the latest one issued; anything else is a
stale response and is dropped.
"""
import logging

IDLE = "idle"
PENDING = "pending"
SETTLED = "settled"


class RequestState:
    def __init__(self, status=IDLE, request_id=None, result=None, error=None):
        self.status = status
        self.request_id = request_id
        self.result = result
        self.error = error

    def __repr__(self):
        return f"RequestState({self.status}, {self.request_id})"


class RequestTracker:
    def __init__(self, kind: str):
        self.kind = kind
        self._last_id = 0
        self.state = RequestState()

    @property
    def pending(self) -> bool:
        return self.state.status == PENDING

    def begin(self) -> int:
        """Issue a new request id and enter Pending. Callers check ``pending`` first."""
        if self.pending:
            raise RuntimeError(f"A {self.kind} request is already in flight")
        self._last_id += 1
        self.state = RequestState(PENDING, self._last_id)
        return self._last_id

    def is_current(self, request_id: int) -> bool:
        return self.pending and request_id == self.state.request_id

    def settle(self, request_id: int, result=None, error=None) -> bool:
        """Record the outcome. Returns False, changing nothing, for a stale response."""
        if not self.is_current(request_id):
            logging.debug(f"Discarding stale {self.kind} response {request_id} (current: {self.state})")
            return False
        self.state = RequestState(SETTLED, request_id, result, error)
        return True

    def invalidate(self):
        """Forget any in-flight request so its response is ignored on arrival."""
        if self.pending:
            logging.debug(f"Invalidating in-flight {self.kind} request {self.state.request_id}")
        self._last_id += 1
        self.state = RequestState()
