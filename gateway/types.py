"""
Type definitions for gateway domain
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union

JSONValue = Union[Dict[str, Any], list, str, int, float, bool, None]


class HTTPMethod(str, Enum):
    """HTTP methods used against the API"""

    GET = "GET"


@dataclass(frozen=True)
class RequestSpec:
    """A single outbound API request, immutable once built"""

    method: HTTPMethod
    url: str
    params: Mapping[str, str] = field(default_factory=dict)
    skip_tls_verify: bool = False

    def __post_init__(self):
        # Params are frozen so one RequestSpec serves every retry
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of consulting the retry policy after a failed attempt"""

    retry: bool
    wait_ms: int = 0
    rule: str = ""
