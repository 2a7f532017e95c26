"""
Shared error handling for the Product Proxy.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class ProxyError(Exception):
    """Base exception for Product Proxy errors."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthError(ProxyError):
    """Access token could not be obtained from the authorization server."""

    def __init__(self, message: str = "Failed to get access token", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTH_ERROR", message, details)


class UpstreamFetchError(ProxyError):
    """Product retrieval from the commerce API failed."""

    def __init__(
        self,
        message: str = "Failed to fetch product data",
        details: Optional[Dict[str, Any]] = None,
        code: str = "UPSTREAM_FETCH_ERROR",
    ):
        super().__init__(code, message, details)


class MalformedUpstreamData(UpstreamFetchError):
    """Upstream payload does not have the shape the transform expects."""

    def __init__(self, message: str = "Malformed upstream product data", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="MALFORMED_UPSTREAM_DATA")


class ValidationError(ProxyError):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)
