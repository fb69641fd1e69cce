# ABOUTME: Exception taxonomy for input, boundary and upstream failures.
# ABOUTME: Each error carries a stable machine-readable code and the HTTP status the web layer returns.


class WeatherAppError(Exception):
    """Base class for errors that map to a JSON error response."""

    code = "internal_error"
    status_code = 500
    public_message: str | None = None

    def to_payload(self) -> dict:
        return {"error": self.public_message or self.code}


class InputError(WeatherAppError):
    """Malformed or missing client input. Never retried."""

    status_code = 400


class InvalidCoordinates(InputError):
    def __init__(self, kind: str):
        super().__init__(f"invalid coordinates: {kind}")
        self.code = kind


class QueryTooShort(InputError):
    code = "query_too_short"


class QueryTooLong(InputError):
    code = "query_too_long"


class InvalidMonth(InputError):
    code = "invalid_month"
    public_message = "Invalid month parameter"


class CalendarUnavailable(WeatherAppError):
    code = "calendar_unavailable"
    public_message = "Failed to load calendar"


class CoordsOutOfBounds(WeatherAppError):
    """Coordinates are valid but outside the configured service region."""

    code = "coords_out_of_bounds"
    status_code = 400


class UpstreamFailure(WeatherAppError):
    """A third-party provider did not return a usable response."""

    status_code = 502


class UpstreamTimeout(UpstreamFailure):
    code = "upstream_timeout"
    status_code = 504
    public_message = "Weather service timeout"


class UpstreamError(UpstreamFailure):
    code = "upstream_error"
    public_message = "Weather service error"

    def __init__(self, status: int | None, body: str):
        super().__init__(f"upstream returned {status}")
        self.status = status
        self.body = body
