"""Application error taxonomy.

Services raise these; a single exception handler in ``coursemarket.main``
turns them into JSON error bodies. Each subclass fixes the HTTP status, each
concrete error fixes a machine-readable ``code``.
"""

from fastapi import status


class AppError(Exception):
    """Base application error."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str = "app_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class UnauthorizedError(AppError):
    """Missing or invalid caller identity."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized"):
        super().__init__(message, code)


class ForbiddenError(AppError):
    """Caller's role is insufficient."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden", code: str = "forbidden"):
        super().__init__(message, code)


class NotFoundError(AppError):
    """Record absent."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Not found", code: str = "not_found"):
        super().__init__(message, code)


class InvalidInputError(AppError):
    """Missing or invalid request field."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid input", code: str = "invalid_input"):
        super().__init__(message, code)


class AlreadyExistsError(AppError):
    """Duplicate subscription, registration or similar."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Already exists", code: str = "already_exists"):
        super().__init__(message, code)


class UpstreamError(AppError):
    """Gateway or blob store call failed or returned an unexpected shape."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(
        self, message: str = "Upstream service failed", code: str = "upstream_failure"
    ):
        super().__init__(message, code)


class ServiceUnavailableError(AppError):
    """A required collaborator is not configured or not initialized."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self, message: str = "Service unavailable", code: str = "service_unavailable"
    ):
        super().__init__(message, code)
