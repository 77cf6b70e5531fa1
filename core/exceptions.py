"""
Custom exceptions for the BounceBan verifier
Provides structured error handling across all packages
"""
from typing import Any, Dict, Optional


class VerifierError(Exception):
    """Base exception for all verifier errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for output records"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(VerifierError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: Optional[str] = None, **details):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={"field": field, **details} if field else details,
            status_code=400,
        )


class ConfigurationError(VerifierError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details={"setting": setting} if setting else {},
            status_code=500,
        )


class PollExhaustedError(VerifierError):
    """Raised when a verification task never leaves the pending state"""

    def __init__(self, task_id: str, attempts: int):
        super().__init__(
            message="Failed to handle request.",
            error_code="POLL_EXHAUSTED",
            details={"task_id": task_id, "attempts": attempts},
            status_code=504,
        )
