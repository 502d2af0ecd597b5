"""
Exception hierarchy for the Supabase Compliance Checker.

Every error carries the HTTP status code the API layer answers with.
"""

from typing import Any, Dict, Optional


class ComplianceError(Exception):
    """Base class for all compliance checker errors."""

    status_code: int = 500
    error: str = "Compliance operation failed"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error

    def to_dict(self) -> Dict[str, Any]:
        """Render the error as an API response body."""
        return {"error": self.error, "details": self.message}


class ValidationError(ComplianceError):
    """Malformed credentials or request input."""

    status_code = 400
    error = "Validation failed"


class AuthenticationError(ComplianceError):
    """Missing or invalid credentials."""

    status_code = 401
    error = "Unauthorized"


class ManagementKeyRequiredError(AuthenticationError):
    """Raised when an operation needs a Management API key and none is configured."""

    error = "Management API key required"

    def __init__(self, message: str = "Management API key is required for this operation"):
        super().__init__(message)


class UpstreamError(ComplianceError):
    """A Supabase SDK, RPC or Management API call failed."""

    status_code = 500
    error = "Upstream request failed"

    def __init__(
        self,
        message: str,
        error: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message, error=error)
        self.upstream_status = upstream_status


__all__ = [
    "ComplianceError",
    "ValidationError",
    "AuthenticationError",
    "ManagementKeyRequiredError",
    "UpstreamError",
]
