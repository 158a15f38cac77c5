"""
Default HTTP fetcher built on httpx
"""
from typing import Optional

import httpx

from wormhole.components.contracts import FetchRequest, FetchResponse
from wormhole.core.config import get_settings
from wormhole.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


class HttpFetcher:
    """
    Fetches source payloads over HTTP.

    Raises on transport failures and non-2xx statuses; the resolution
    pipeline turns those into TransportError for every waiter.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[dict] = None
    ):
        self.timeout = timeout if timeout is not None else get_settings().fetch_timeout_seconds
        self.transport = transport
        self.headers = headers or {}

    async def __call__(self, request: FetchRequest) -> FetchResponse:
        logger.debug(f"Fetching {request.method} {request.url}")
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            headers=self.headers,
            follow_redirects=True
        ) as client:
            response = await client.request(request.method, request.url)
            response.raise_for_status()
            return FetchResponse(
                data=response.text,
                headers=dict(response.headers),
                status_code=response.status_code,
                url=str(response.url)
            )
