"""
Sora video generation provider implementation.

Forwards job operations to the upstream /v1/videos API and relays its
status codes and JSON bodies as-is. Only transport concerns are handled
here: bearer auth, timeouts and mapping network failures to a uniform
error. Nothing is retried; clients re-poll.
"""
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from video.base import JobOptions, ProviderResponse, VideoProvider
from video.errors import ProviderConfigError, ProviderUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1/videos"


class SoraProvider(VideoProvider):
    """
    Upstream video generation provider.

    The API key is checked on every call rather than at startup, so a
    missing key fails each request the same way until it is configured.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        if not self.api_key:
            logger.warning("SORA_API_KEY not set - upstream requests will fail")

    def _headers(self) -> dict:
        if not self.api_key:
            raise ProviderConfigError("SORA_API_KEY is not configured")
        return {"Authorization": f"Bearer {self.api_key}"}

    def _job_url(self, job_id: str) -> str:
        return f"{self.base_url}/{quote(job_id, safe='')}"

    async def _send(self, method: str, url: str, failure_message: str, **kwargs) -> httpx.Response:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                return await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{failure_message}: {str(e)}", exc_info=True)
            # Don't expose internal error details to client
            raise ProviderUnavailableError(failure_message) from e

    def _relay(self, res: httpx.Response, success_status: int, failure_message: str) -> ProviderResponse:
        try:
            data = res.json()
        except ValueError as e:
            logger.error(
                f"{failure_message}: upstream returned non-JSON body (status {res.status_code})",
                exc_info=True
            )
            raise ProviderUnavailableError(failure_message) from e

        if not res.is_success:
            logger.warning(f"Upstream returned {res.status_code} for {res.request.method} {res.request.url}")
            return ProviderResponse(status_code=res.status_code, body=data)
        return ProviderResponse(status_code=success_status, body=data)

    async def create_video(self, options: JobOptions) -> ProviderResponse:
        """
        Submit a generation job upstream.

        Args:
            options: Validated generation parameters, sent as the JSON body

        Returns:
            ProviderResponse: 202 with the upstream job on success, otherwise
            the upstream status and body

        Raises:
            ProviderConfigError: If SORA_API_KEY is missing
            ProviderUnavailableError: On network failure or an unreadable response
        """
        message = "Failed to create video generation job"
        res = await self._send("POST", self.base_url, message, json=options.to_dict())
        response = self._relay(res, 202, message)
        if res.is_success and isinstance(response.body, dict):
            logger.info(f"Created upstream job {response.body.get('id')} (status {response.body.get('status')})")
        return response

    async def check_status(self, job_id: str) -> ProviderResponse:
        """
        Fetch the upstream job state. Upstream 404s are relayed unchanged.

        Raises:
            ProviderConfigError: If SORA_API_KEY is missing
            ProviderUnavailableError: On network failure or an unreadable response
        """
        message = "Failed to fetch video generation job"
        res = await self._send("GET", self._job_url(job_id), message)
        return self._relay(res, 200, message)

    async def cancel_video(self, job_id: str) -> ProviderResponse:
        """
        Cancel the upstream job.

        Returns:
            ProviderResponse: 204 with no body if upstream answered 204,
            otherwise the relayed status and body

        Raises:
            ProviderConfigError: If SORA_API_KEY is missing
            ProviderUnavailableError: On network failure or an unreadable response
        """
        message = "Failed to cancel video generation job"
        res = await self._send("DELETE", self._job_url(job_id), message)
        if res.status_code == 204:
            logger.info(f"Canceled upstream job {job_id}")
            return ProviderResponse(status_code=204)
        return self._relay(res, 200, message)
