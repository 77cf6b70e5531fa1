"""
Base API client: the transport layer shared by all providers

``send`` issues exactly one HTTP request and either returns the decoded JSON
body or raises an ``ApiFailure``. Retrying is layered on top by
``make_request`` through a ``RetryPolicy``.
"""
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import httpx

from core.config import get_settings
from core.logging import get_logger

from .exceptions import ApiFailure, TerminalHttpError
from .metrics import GatewayMetrics
from .retry import RetryPolicy
from .types import HTTPMethod, JSONValue, RequestSpec


class BaseAPIClient(ABC):
    """Abstract base class for all external API clients"""

    def __init__(
        self,
        provider: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
        skip_tls_verify: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.provider = provider
        self.settings = get_settings()
        self.logger = get_logger(f"gateway.{provider}", domain="gateway")

        self.api_key = api_key or self._get_api_key()
        self.base_url = base_url or self._get_base_url()
        self.skip_tls_verify = self.settings.skip_tls_verify if skip_tls_verify is None else skip_tls_verify
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)
        self.metrics = GatewayMetrics()

        # One client per TLS mode, both sharing timeouts and headers
        self.timeout = httpx.Timeout(timeout or self.settings.request_timeout)
        headers = self._get_headers()
        self.client = httpx.AsyncClient(timeout=self.timeout, headers=headers, transport=transport)
        self.insecure_client = httpx.AsyncClient(
            timeout=self.timeout, headers=headers, transport=transport, verify=False
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()
        await self.insecure_client.aclose()

    @abstractmethod
    def _get_base_url(self) -> str:
        """Get the base URL for this provider"""

    @abstractmethod
    def _get_api_key(self) -> str:
        """Get the configured API key for this provider"""

    @abstractmethod
    def _get_headers(self) -> Dict[str, str]:
        """Get authentication and identification headers for this provider"""

    def build_spec(
        self, method: HTTPMethod, endpoint: str, params: Optional[Mapping[str, str]] = None
    ) -> RequestSpec:
        """Build an immutable request description for an endpoint"""
        return RequestSpec(
            method=method,
            url=f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}",
            params=params or {},
            skip_tls_verify=self.skip_tls_verify,
        )

    async def send(self, spec: RequestSpec) -> JSONValue:
        """
        Issue a single HTTP request

        Args:
            spec: Request to send

        Returns:
            The decoded JSON body of a 2xx response

        Raises:
            ApiFailure: On non-2xx status, undecodable body or network error
        """
        client = self.insecure_client if spec.skip_tls_verify else self.client
        endpoint = httpx.URL(spec.url).path
        start_time = time.time()
        response = None

        try:
            response = await client.request(spec.method.value, spec.url, params=dict(spec.params))
        except httpx.TimeoutException as e:
            self.logger.warning(f"Timeout calling {spec.method.value} {endpoint}: {type(e).__name__}")
            raise ApiFailure.from_status(
                f"Request timed out ({type(e).__name__})", 408, provider=self.provider
            ) from e
        except httpx.HTTPError as e:
            self.logger.error(f"Network error calling {spec.method.value} {endpoint}: {e}")
            raise TerminalHttpError(f"Network error: {e}", None, provider=self.provider) from e
        finally:
            status_code = response.status_code if response is not None else 0
            self.metrics.record_api_call(
                provider=self.provider,
                endpoint=endpoint,
                status_code=status_code,
                duration=time.time() - start_time,
            )

        if not response.is_success:
            message = self._error_message(response)
            self.logger.error(f"Failed request {endpoint}: HTTP {response.status_code} {message}")
            raise ApiFailure.from_status(
                message, response.status_code, provider=self.provider, response_body=response.text
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TerminalHttpError(
                "Invalid JSON in API response",
                response.status_code,
                provider=self.provider,
                response_body=response.text,
            ) from e

        self.logger.debug(f"API response {endpoint}: {data}")
        return data

    async def make_request(
        self,
        method: HTTPMethod,
        endpoint: str,
        params: Optional[Mapping[str, str]] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> JSONValue:
        """
        Send a request, retrying transient failures

        Args:
            method: HTTP method
            endpoint: API endpoint path relative to the base URL
            params: Query string parameters
            retry_policy: Overrides the client's default policy for this call

        Returns:
            The decoded JSON body

        Raises:
            ApiFailure: The last failure once the policy gives up
        """
        spec = self.build_spec(method, endpoint, params)
        policy = retry_policy or self.retry_policy
        return await policy.execute(lambda: self.send(spec), operation=f"{method.value} {endpoint}")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract the most useful error message from a failed response"""
        fallback = f"HTTP {response.status_code}"
        try:
            body: Any = response.json()
        except ValueError:
            return response.text or fallback

        if isinstance(body, dict):
            for key in ("message", "error", "messages"):
                value = body.get(key)
                if isinstance(value, list):
                    value = "; ".join(str(v) for v in value)
                if value:
                    return str(value)
        return response.text or fallback
