"""Exception types raised by the film studio core."""


class FilmStudioError(Exception):
    """Base class for all film studio failures."""


class NoSlotsDetected(FilmStudioError, ValueError):
    """Template analysis produced zero usable photo slots."""

    def __init__(self, message: str = "No photo slots detected in template") -> None:
        super().__init__(message)


class NoPhotosProvided(FilmStudioError, ValueError):
    """Nothing to place into the template."""

    def __init__(self, message: str = "No photos to export") -> None:
        super().__init__(message)


class ResourceDecodeFailure(FilmStudioError, IOError):
    """A template or photo reference could not be decoded into pixels."""

    def __init__(self, reference: str, reason: str = "") -> None:
        self.reference = reference
        self.reason = reason
        message = f"Could not decode image: {reference}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class CanvasContextUnavailable(FilmStudioError, RuntimeError):
    """The output drawing surface could not be allocated."""
