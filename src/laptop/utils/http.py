"""Small HTTP helpers for installer scripts and version lookups."""

import logging

import httpx

from laptop.errors import DownloadFailure

DEFAULT_TIMEOUT = 30.0


async def fetch_text(url: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """GET a URL and return its body as text.

    Args:
        url: HTTP/HTTPS URL
        timeout: Per-request timeout in seconds

    Returns:
        Response body

    Raises:
        DownloadFailure: On connection errors or non-2xx responses
    """
    logger = logging.getLogger("laptop.http")
    logger.info(f"Fetching {url}")
    try:
        async with httpx.AsyncClient(follow_redirects=True, timeout=timeout) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Fetch failed for {url}: {e}")
        raise DownloadFailure(url, str(e)) from e

    logger.debug(f"Fetched {len(response.text)} characters from {url}")
    return response.text
