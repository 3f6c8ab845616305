"""
Error taxonomy shared by every handler.

Each error carries the human-readable message returned to the caller as
{"error": message} and the HTTP status to send with it. Caller-side failures
use 400, upstream or configuration failures use 500.
"""
from fastapi import status


class ServiceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(ServiceError):
    pass


class Unauthenticated(ServiceError):
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class Unauthorized(ServiceError):
    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class NotFound(ServiceError):
    pass


class TokenInvalid(NotFound):
    """Impersonation token is unknown, already used or expired."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class Conflict(ServiceError):
    pass


class UpstreamFailure(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ConfigurationError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
