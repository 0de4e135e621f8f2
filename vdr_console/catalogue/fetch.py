# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Fetching ledger explorer pages for credential import."""
import logging
from typing import Optional

import httpx

log = logging.getLogger(__name__)


class PageFetchError(Exception):
    """Raised when an explorer page cannot be retrieved."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


# =============================================================================
# Singleton
# =============================================================================

_fetcher: Optional["LedgerPageFetcher"] = None


def get_page_fetcher() -> "LedgerPageFetcher":
    """Get or create the page fetcher singleton."""
    global _fetcher
    if _fetcher is None:
        from vdr_console.config import SCRAPE_TIMEOUT, SCRAPE_USER_AGENT
        _fetcher = LedgerPageFetcher(timeout=SCRAPE_TIMEOUT, user_agent=SCRAPE_USER_AGENT)
    return _fetcher


def reset_page_fetcher() -> None:
    """Reset the singleton (for testing)."""
    global _fetcher
    _fetcher = None


async def close_page_fetcher() -> None:
    """Close the HTTP client (call during shutdown)."""
    global _fetcher
    if _fetcher is not None:
        await _fetcher.close()
        _fetcher = None


# =============================================================================
# Fetcher
# =============================================================================


class LedgerPageFetcher:
    """Downloads IndyScan / CandyScan transaction pages as HTML text."""

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: str = "Mozilla/5.0 (compatible; CredentialCatalogue/1.0)",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(
            headers={
                "User-Agent": user_agent,
                "Accept": "text/html,application/xhtml+xml",
            },
            timeout=httpx.Timeout(timeout, connect=10.0),
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        await self._http.aclose()

    async def fetch(self, url: str) -> str:
        """GET ``url`` and return the body.

        Raises:
            PageFetchError: on transport errors or a non-2xx status.
        """
        try:
            response = await self._http.get(url)
        except httpx.HTTPError as e:
            log.warning(f"Fetching {url} failed: {e}")
            raise PageFetchError(f"Failed to fetch URL: {e}") from e

        if not response.is_success:
            raise PageFetchError(
                f"Failed to fetch URL: {response.status_code}",
                status_code=response.status_code,
            )
        return response.text
