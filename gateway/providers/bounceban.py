"""
BounceBan email verification API client

Endpoints:
    GET /v1/verify/single          submit one email for verification
    GET /v1/verify/single/status   poll a pending verification task
    GET /v1/account                credential check
"""
from typing import Any, Dict, Mapping, Optional

from gateway.base import BaseAPIClient
from gateway.exceptions import ApiFailure, AuthenticationError
from gateway.retry import RetryPolicy
from gateway.types import HTTPMethod

SOURCE_HEADER = "BB-UTC-Source"


class BounceBanClient(BaseAPIClient):
    """
    BounceBan API client

    Authenticates with the raw API key in the Authorization header (no
    ``Bearer`` prefix) and tags every request with the integration source.
    """

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(provider="bounceban", api_key=api_key, **kwargs)

    def _get_base_url(self) -> str:
        return self.settings.bounceban_base_url

    def _get_api_key(self) -> str:
        return self.settings.get_api_key()

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": self.api_key,
            SOURCE_HEADER: self.settings.bounceban_source_tag,
        }

    async def verify_single(
        self, params: Mapping[str, str], retry_policy: Optional[RetryPolicy] = None
    ) -> Dict[str, Any]:
        """
        Submit an email for verification

        Args:
            params: Query parameters (email, mode, disable_catchall_verify, url)
            retry_policy: Optional per-call retry policy

        Returns:
            Raw API payload; pending when status is "verifying" or "queue"
        """
        return await self.make_request(HTTPMethod.GET, "/v1/verify/single", params, retry_policy)

    async def verify_status(self, task_id: str, retry_policy: Optional[RetryPolicy] = None) -> Dict[str, Any]:
        """Fetch the current state of a verification task"""
        return await self.make_request(
            HTTPMethod.GET, "/v1/verify/single/status", {"id": task_id}, retry_policy
        )

    async def get_account(self) -> Dict[str, Any]:
        """Fetch account details for the configured key"""
        return await self.make_request(HTTPMethod.GET, "/v1/account")

    async def verify_api_key(self) -> bool:
        """
        Verify API key is valid

        Returns:
            True if API key is valid

        Raises:
            AuthenticationError: If API key is invalid
            ApiFailure: If the check could not be completed
        """
        try:
            await self.get_account()
        except AuthenticationError:
            self.logger.warning("BounceBan API key rejected")
            raise
        except ApiFailure as e:
            self.logger.error(f"Credential check failed: {e.message}")
            raise
        self.logger.info("BounceBan API key validated")
        return True
