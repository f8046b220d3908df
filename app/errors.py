"""Domain exception hierarchy for GameSmith.

Services raise these instead of bare ``ValueError`` so that the global
exception handler can map them to the correct HTTP status code.  Errors
coming back from the build provider keep the provider's raw message.
"""


class GameSmithError(Exception):
    """Base for all domain exceptions."""

    def __init__(self, message: str = "An unexpected error occurred", *, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(GameSmithError):
    """Resource not found (404)."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)


class BadRequestError(GameSmithError):
    """Client sent an invalid request (400)."""

    def __init__(self, message: str = "Bad request"):
        super().__init__(message, status_code=400)


class UnsupportedPlatformError(BadRequestError):
    """Requested game platform is not in the supported set (400)."""

    def __init__(self, platform: str, supported: list[str]):
        super().__init__(
            f"Platform {platform} not supported. Supported: {', '.join(supported)}"
        )
        self.platform = platform


class GenerationError(GameSmithError):
    """The completion provider could not produce a game (502)."""

    def __init__(self, message: str = "Game generation failed"):
        super().__init__(message, status_code=502)


class BuildError(GameSmithError):
    """Build-related error (400 by default)."""

    def __init__(self, message: str = "Build error", *, status_code: int = 400):
        super().__init__(message, status_code=status_code)


class BuildFailedError(BuildError):
    """The provider reported the build as failed or canceled (502)."""

    def __init__(self, message: str = "Build failed", *, build_id: str = "", status: str = "failed"):
        super().__init__(message, status_code=502)
        self.build_id = build_id
        self.status = status


class BuildTimeoutError(BuildError):
    """Build did not reach a terminal state before the deadline (504)."""

    def __init__(self, message: str = "Build timeout - exceeded maximum wait time", *, build_id: str = ""):
        super().__init__(message, status_code=504)
        self.build_id = build_id


def format_error_response(
    *,
    error: str,
    detail: object = None,
    request_id: str = "",
) -> dict:
    """Build a structured error response dict.

    Parameters
    ----------
    error : str
        Short error title (e.g. ``"Internal Server Error"``).
    detail : object
        Human-readable detail string or validation error list.
    request_id : str
        The request ID for tracing.

    Returns
    -------
    dict
        ``{"error": ..., "detail": ..., "request_id": ...}``
    """
    return {
        "error": error,
        "detail": detail if detail is not None else error,
        "request_id": request_id,
    }
