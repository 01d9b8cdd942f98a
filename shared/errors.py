"""
Shared error handling for the Terminology Access Layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class TerminologyServiceException(Exception):
    """Base exception for Terminology Access Layer services."""

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


class AuthError(TerminologyServiceException):
    """Login to the terminology server was rejected or could not be attempted."""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")


class GatewayError(TerminologyServiceException):
    """Network failure or non-auth HTTP error talking to the terminology server."""

    def __init__(self, url: str, message: str = "Terminology server error",
                 status_code: Optional[int] = None, reason: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        merged = {"url": url}
        if status_code is not None:
            merged["status_code"] = status_code
        if reason:
            merged["reason"] = reason
        merged.update(details or {})
        super().__init__("GATEWAY_ERROR", message, merged)
        self.url = url
        self.status_code = status_code
        self.reason = reason


class NotFoundError(TerminologyServiceException):
    """Requested entity does not exist."""

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class ConfigurationError(TerminologyServiceException):
    """Required backend configuration is missing."""

    def __init__(self, message: str = "Terminology server is not configured", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
