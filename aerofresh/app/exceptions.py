"""Custom exceptions for the AeroFresh API."""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


class AeroFreshException(Exception):
    """Base class for API exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code for consistent HTTP response handling.
    Every error body is a JSON object with an ``error`` field.
    """
    status_code: int = 500

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)

    def to_content(self) -> Dict[str, Any]:
        return {"error": self.message}

    def headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_response(self) -> JSONResponse:
        """Render the exception as a JSON error response."""
        return JSONResponse(
            status_code=self.status_code,
            content=self.to_content(),
            headers=self.headers(),
        )


class AuthenticationError(AeroFreshException):
    """Raised when the shared-secret credential is missing or wrong.

    Maps to HTTP 401 Unauthorized.
    """
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class RateLimitExceededError(AeroFreshException):
    """Raised when a client has exhausted its quota for the current window.

    Maps to HTTP 429 Too Many Requests. The caller is expected to back off
    for ``retry_after`` seconds.
    """
    status_code = 429

    def __init__(
        self,
        retry_after: int,
        limit: int,
        remaining: int = 0,
        reset: Optional[int] = None,
    ):
        self.retry_after = retry_after
        self.limit = limit
        self.remaining = remaining
        self.reset = reset
        super().__init__("Rate limit exceeded")

    def to_content(self) -> Dict[str, Any]:
        return {"error": self.message, "retryAfter": self.retry_after}

    def headers(self) -> Dict[str, str]:
        headers = {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
        }
        if self.reset is not None:
            headers["X-RateLimit-Reset"] = str(self.reset)
        return headers


class ResourceNotFoundError(AeroFreshException):
    """Raised for an unknown tail number or other missing resource.

    Maps to HTTP 404 Not Found.
    """
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)
