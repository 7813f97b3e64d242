"""Service-layer exceptions, mapped to HTTP responses in pwa_backend.api.errors."""


class ServiceError(Exception):
    """Base class for expected service failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailedError(ServiceError):
    """A request field is missing or malformed."""

    status_code = 400


class AuthenticationError(ServiceError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class NotFoundError(ServiceError):
    """A referenced user or resource does not exist."""

    status_code = 404


class ConflictError(ServiceError):
    """A unique field is already taken."""

    status_code = 409


class PushNotConfiguredError(ServiceError):
    """VAPID credentials are missing, so nothing can be delivered."""

    status_code = 503

    def __init__(self, message: str = "Push notifications are not configured"):
        super().__init__(message)
