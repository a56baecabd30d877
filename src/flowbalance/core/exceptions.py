"""Application-level exceptions."""


class AppError(Exception):
    """Base exception for application errors."""

    status_code = 400

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class AuthenticationError(AppError):
    """Raised when credentials are missing, invalid or expired."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED")


class ForbiddenError(AppError):
    """Raised when the caller may not perform an operation."""

    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, code="FORBIDDEN")


class ConflictError(AppError):
    """Raised when a create/update collides with existing data."""

    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")


class ExchangeRateApiError(AppError):
    """Raised when the exchange rate API call fails."""

    status_code = 502

    def __init__(self, message: str, code: str = "NETWORK_ERROR", upstream_status: int = 0):
        self.upstream_status = upstream_status
        super().__init__(message, code=code)
