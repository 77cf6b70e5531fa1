"""
Gateway - transport, retry policy and metrics for the BounceBan API

No other package makes direct HTTP calls; everything goes through this gateway.
"""

from .base import BaseAPIClient
from .exceptions import (
    ApiFailure,
    AuthenticationError,
    GatewayError,
    TerminalHttpError,
    TransientHttpError,
)
from .metrics import GatewayMetrics
from .retry import RetryPolicy, RetryRule, fixed_wait, linear_backoff
from .types import HTTPMethod, RequestSpec, RetryDecision

__all__ = [
    "BaseAPIClient",
    "GatewayMetrics",
    "RetryPolicy",
    "RetryRule",
    "fixed_wait",
    "linear_backoff",
    # Exceptions
    "GatewayError",
    "ApiFailure",
    "TransientHttpError",
    "TerminalHttpError",
    "AuthenticationError",
    # Types
    "HTTPMethod",
    "RequestSpec",
    "RetryDecision",
]
