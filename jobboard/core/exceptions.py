from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class ConfigurationError(AppException):
    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIG_ERROR"
        )

class BackendRequestError(AppException):
    """
    Non-success response (or transport failure, status 0) from the hosted backend.
    Client errors keep their status; anything else is reported as a bad gateway.
    """
    def __init__(self, status: int, reason: str = "", body: str = ""):
        self.status = status
        self.reason = reason
        self.body = body
        label = f"{status} {reason}".strip()
        super().__init__(
            message=f"Backend request failed ({label}): {body}",
            status_code=status if 400 <= status < 500 else 502,
            error_code="BACKEND_ERROR",
            details={"status": status}
        )

class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )

class AccessDeniedError(AppException):
    """Write rejected by the backend's row-level policy."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )

class NotFoundError(AppException):
    def __init__(self, message: str = "Listing not found"):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND"
        )

class ValidationFailedError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            details=details
        )
