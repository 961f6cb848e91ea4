"""HTTP reachability probe."""

import logging
from typing import Optional

import httpx

from ..entities.connectivity import ConnectivityConfig

logger = logging.getLogger(__name__)


class HttpReachabilityProbe:
    """Checks that the API answers a HEAD request to its health endpoint.

    Any 2xx or 3xx response counts as reachable. Timeouts, transport
    errors and other statuses count as unreachable; the probe itself never
    raises for them.
    """

    def __init__(
        self,
        config: Optional[ConnectivityConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or ConnectivityConfig()
        self._transport = transport

    async def __call__(self) -> bool:
        return await self.check()

    async def check(self) -> bool:
        url = self.config.health_check_url
        try:
            async with httpx.AsyncClient(
                timeout=self.config.probe_timeout,
                transport=self._transport,
            ) as client:
                response = await client.head(url, headers={"Cache-Control": "no-cache"})
        except httpx.TimeoutException:
            logger.debug(f"Health check to {url} timed out after {self.config.probe_timeout}s")
            return False
        except httpx.HTTPError as e:
            logger.debug(f"Health check to {url} failed: {e}")
            return False

        reachable = 200 <= response.status_code < 400
        if not reachable:
            logger.debug(f"Health check to {url} returned {response.status_code}")
        return reachable
