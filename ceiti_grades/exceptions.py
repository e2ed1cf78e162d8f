"""Exceptions raised by the CEITI grades library."""


class CeitiGradesError(Exception):
    """Base class for library errors."""


class NetworkError(CeitiGradesError):
    """The portal answered with a non-success HTTP status."""

    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = status
        super().__init__(message or f"Request failed with status: {status}")


class CancellationError(CeitiGradesError):
    """A request was aborted through its cancellation token."""


class EmptyResponseError(CeitiGradesError):
    """The portal answered successfully but the body was blank."""


class ConfigError(CeitiGradesError):
    """Configuration could not be loaded or failed validation."""
