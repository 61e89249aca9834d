"""
Custom Exception Classes

Defines application-specific exceptions for better error handling and logging.
Each exception carries the HTTP status the API layer answers with.
"""

from typing import Any, Dict, Optional


class RelayException(Exception):
    """Base exception for all relay errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str = "RELAY_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/API responses"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code,
        }


class ValidationException(RelayException):
    """Caller errors: missing header, missing required field, bad body"""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="VALIDATION_ERROR", details=details)


class CredentialUnavailableException(RelayException):
    """No usable partner token could be obtained for the cached path"""

    status_code = 503

    def __init__(
        self,
        message: str = "Getir token unavailable",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code="CREDENTIAL_UNAVAILABLE", details=details)


class GetirException(RelayException):
    """Getir partner API related errors"""

    def __init__(
        self,
        message: str,
        error_code: str = "GETIR_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(
            message, error_code=error_code, details=details, status_code=status_code
        )


class GetirAuthException(GetirException):
    """Getir token exchange failed"""

    status_code = 503

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = {**(details or {}), "auth_failed": True}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        if upstream_body is not None:
            details["upstream_body"] = upstream_body
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        super().__init__(message, error_code="GETIR_AUTH_ERROR", details=details)


class UpstreamUnavailableException(RelayException):
    """The upstream call itself could not complete (timeout, DNS, reset)"""

    status_code = 502

    def __init__(
        self,
        message: str = "Upstream call failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code="UPSTREAM_UNAVAILABLE", details=details)

