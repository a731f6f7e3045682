"""Public IP echo service client."""

from dataclasses import dataclass

import httpx

from geo_tracker.services.environment import IpLookupClient


@dataclass
class HttpxIpLookupClient(IpLookupClient):
    """HTTPX-backed IP echo client."""

    url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, url: str) -> "HttpxIpLookupClient":
        """Create an IP lookup client with a managed httpx session."""
        return cls(url=url, http_client=httpx.AsyncClient())

    async def lookup(self) -> dict[str, object]:
        """Fetch the echo service body."""
        response = await self.http_client.get(self.url, timeout=10)
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
