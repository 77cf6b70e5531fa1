"""
Gateway-specific exceptions
"""
from typing import Optional

from core.exceptions import VerifierError

TRANSIENT_STATUS_CODES = frozenset({408, 429, 500})


class GatewayError(VerifierError):
    """Base exception for gateway domain"""

    pass


class ApiFailure(GatewayError):
    """Any failed call to the remote API

    ``status_code`` is the HTTP status, or None when no response arrived.
    ``message`` is the single canonical description of the failure.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider: str = "bounceban",
        response_body: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            error_code="API_FAILURE",
            details={
                "provider": provider,
                "api_status_code": status_code,
                "response_body": response_body,
            },
        )
        self.provider = provider
        self.status_code = status_code

    @classmethod
    def from_status(
        cls,
        message: str,
        status_code: Optional[int],
        provider: str = "bounceban",
        response_body: Optional[str] = None,
    ) -> "ApiFailure":
        """Build the failure subclass matching the status code"""
        if status_code in TRANSIENT_STATUS_CODES:
            failure_cls = TransientHttpError
        elif status_code in (401, 403):
            failure_cls = AuthenticationError
        else:
            failure_cls = TerminalHttpError
        return failure_cls(message, status_code=status_code, provider=provider, response_body=response_body)


class TransientHttpError(ApiFailure):
    """Rate limiting, server error or timeout; eligible for retry"""

    pass


class TerminalHttpError(ApiFailure):
    """Client error, malformed response or network failure; never retried"""

    pass


class AuthenticationError(TerminalHttpError):
    """Authentication failed with the API provider"""

    pass
