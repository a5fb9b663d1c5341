"""HTTP helpers shared by the carrier API clients."""

import logging
from typing import Any

import aiohttp

logger = logging.getLogger(__name__)

USER_AGENT = "rp-shipping/1.0"


def create_session(timeout: float = 20.0) -> aiohttp.ClientSession:
    """Create configured aiohttp session for carrier API calls.

    Args:
        timeout: Default total timeout in seconds for requests on this session.

    Returns:
        aiohttp.ClientSession: Configured HTTP session.
    """
    connector = aiohttp.TCPConnector(limit=50, limit_per_host=10)
    client_timeout = aiohttp.ClientTimeout(total=timeout)

    headers = {
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    }

    return aiohttp.ClientSession(connector=connector, timeout=client_timeout, headers=headers)


class LazySession:
    """HTTP session shared by the carrier clients, opened on first request.

    Commands served entirely from the cache never open a connection pool,
    and ``close`` only touches a session that was actually opened.
    """

    def __init__(self, timeout: float = 20.0):
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    @property
    def opened(self) -> bool:
        return self._session is not None and not self._session.closed

    def get(self) -> aiohttp.ClientSession:
        """Return the open session, creating it if needed."""
        if not self.opened:
            self._session = create_session(self.timeout)
        return self._session

    async def close(self) -> bool:
        """Close the session.

        Returns:
            True if an open session was closed.
        """
        if not self.opened:
            return False

        await self._session.close()
        self._session = None
        return True


async def get_json(
    session: aiohttp.ClientSession | LazySession,
    url: str,
    params: dict[str, str],
    timeout: float,
) -> tuple[int, Any]:
    """GET a JSON document.

    Args:
        session: HTTP session, or a LazySession to open on demand.
        url: Endpoint URL.
        params: Query parameters.
        timeout: Total timeout for this request in seconds.

    Returns:
        Tuple of HTTP status and decoded body.

    Raises:
        aiohttp.ClientError: On connection problems or an undecodable body.
        asyncio.TimeoutError: When the request exceeds ``timeout``.
    """
    if isinstance(session, LazySession):
        session = session.get()

    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with session.get(url, params=params, timeout=client_timeout) as response:
        # Tariff API answers with text/plain on some endpoints
        data = await response.json(content_type=None)
        logger.debug(f"GET {url} -> {response.status}")
        return response.status, data
