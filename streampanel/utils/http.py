"""
Outbound HTTP helpers.

Every fetch made by the importers and the HLS proxy goes through
``fetch_url``: one attempt, bounded by a timeout, with failures surfaced as
``UpstreamFetchError``.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from streampanel.exceptions import UpstreamFetchError

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Body and metadata of a successful upstream response."""

    url: str
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


def create_http_client(timeout: float) -> httpx.AsyncClient:
    """Create the client used for outbound fetches."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
    )


async def fetch_url(
    url: str,
    timeout: float,
    headers: Optional[dict[str, str]] = None,
) -> FetchResult:
    """
    Fetch ``url`` once.

    Raises:
        UpstreamFetchError: on timeout, transport failure or a non-2xx status.
    """
    try:
        async with create_http_client(timeout) as client:
            response = await client.get(url, headers=headers)
    except httpx.TimeoutException as e:
        logger.warning(f"Timed out fetching {url}: {e}")
        raise UpstreamFetchError(url, f"Timed out fetching {url}", timed_out=True) from e
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch {url}: {e}")
        raise UpstreamFetchError(url, f"Failed to fetch {url}: {e}") from e

    if not response.is_success:
        logger.warning(f"Upstream {url} answered {response.status_code}")
        raise UpstreamFetchError(
            url,
            f"Upstream error: {response.status_code}",
            status_code=response.status_code,
        )

    return FetchResult(
        url=str(response.url),
        status_code=response.status_code,
        content=response.content,
        headers={key.lower(): value for key, value in response.headers.items()},
    )
