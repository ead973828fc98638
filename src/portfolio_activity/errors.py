"""Error taxonomy for the activity service.

Every error carries an HTTP status code and a public message that is safe to
show to callers. The detailed message (``str(error)``) is for logs only.
"""


class ActivityError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str, public_message: str | None = None) -> None:
        super().__init__(message)
        if public_message is not None:
            self.public_message = public_message


class UpstreamError(ActivityError):
    """A mandatory upstream call failed, timed out or returned a bad status."""

    public_message = "Upstream service unavailable"


class ValidationError(UpstreamError):
    """An upstream payload did not match its expected schema.

    Attributes:
        path: Dotted location of the first violating field ("" for the root)
    """

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class NotFoundError(ActivityError):
    """A requested local resource is absent or outside its root."""

    status_code = 404
    public_message = "Resource not found"


class BadRequestError(ActivityError):
    """A required caller parameter is missing or malformed."""

    status_code = 400
    public_message = "Bad request"

    def __init__(self, message: str) -> None:
        # Caller errors describe the caller's own input, so they are safe to echo.
        super().__init__(message, public_message=message)


class ConfigError(ActivityError):
    """Required configuration is missing at startup."""

    public_message = "Service misconfigured"


class MetadataExtractionError(ActivityError):
    """Embedded metadata could not be read from a local file."""

    public_message = "Failed to extract image metadata"
