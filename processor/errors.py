"""
Error types shared by the processors, providers and handlers.
"""


class EventServiceError(Exception):
    """Base error carrying an HTTP-style status code.

    Subclasses pick the default status:
    - 400: ValidationError - input rejected before any side effect
    - 404: NotFoundError - record does not exist
    - 500: ConfigurationError - function deployed without a required secret
    - 502: ProviderError - third-party API failure
    """

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(EventServiceError):
    status_code = 400


class NotFoundError(EventServiceError):
    status_code = 404


class ConfigurationError(EventServiceError):
    status_code = 500


class ProviderError(EventServiceError):
    """Raised when a third-party API call fails or returns an error payload."""

    status_code = 502

    def __init__(self, message: str, provider: str, status_code: int = None):
        self.provider = provider
        super().__init__(message, status_code)
