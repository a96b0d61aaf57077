"""Application exception types."""

from tastemap.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        super().__init__(message)


def not_found(message: str = "Resource not found") -> ApiError:
    return ApiError(status_code=404, code="RESOURCE_NOT_FOUND", message=message)


def forbidden(message: str = "Access to this resource is forbidden") -> ApiError:
    return ApiError(status_code=403, code="FORBIDDEN", message=message)


def unauthorized(message: str = "Unauthorized") -> ApiError:
    return ApiError(status_code=401, code="UNAUTHORIZED", message=message)


__all__ = ["ApiError", "forbidden", "not_found", "unauthorized"]
