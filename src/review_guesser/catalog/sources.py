"""
Catalog sources.

A source turns a partition name into the raw text of that partition.
Any failure is reported as SourceUnavailable; the loader decides what
an unavailable partition means.
"""

import asyncio
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import httpx

from review_guesser.exceptions import SourceUnavailable
from review_guesser.logger import get_logger


@runtime_checkable
class CatalogSource(Protocol):
    """
    Anything that can hand back the raw text of a named partition.

    Implementations should raise SourceUnavailable on failure. The loader
    treats any other exception the same way, but logs it as an error.
    """

    async def fetch_text(self, name: str) -> str:
        """Return the raw text of partition ``name`` or raise SourceUnavailable."""
        ...


class HttpCatalogSource:
    """
    Fetches partition files over HTTP.

    Example:
        >>> async with HttpCatalogSource("https://example.org/data") as source:
        ...     text = await source.fetch_text("Batch_1.csv")
    """

    source_name = "http"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the source.

        Args:
            base_url: URL that partition names are appended to
            timeout: HTTP request timeout in seconds
            client: Pre-built client (the source then does not own it)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._logger = get_logger(__name__, component="catalog_source", source=self.source_name)

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                headers={
                    "User-Agent": "SteamReviewGuesser/1.0",
                    "Accept": "text/csv, text/plain",
                },
            )
            self._owns_client = True
        return self._client

    def url_for(self, name: str) -> str:
        """Build the URL of a partition."""
        return f"{self._base_url}/{name.lstrip('/')}"

    async def fetch_text(self, name: str) -> str:
        """
        Download a partition file.

        Raises:
            SourceUnavailable: On a transport error or a non-success status
        """
        url = self.url_for(name)
        self._logger.debug("Fetching partition", partition=name, url=url)

        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise SourceUnavailable(
                f"Catalog fetch failed: {e}",
                source=self.source_name,
                key=name,
                original_error=e,
            ) from e

        if not response.is_success:
            raise SourceUnavailable(
                f"Catalog fetch failed: {response.status_code}",
                source=self.source_name,
                key=name,
                status_code=response.status_code,
            )

        return response.text

    async def close(self) -> None:
        """Close HTTP client and release resources."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpCatalogSource":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()


class FileCatalogSource:
    """Reads partition files from a local directory."""

    source_name = "file"

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        return self._data_dir / name

    async def fetch_text(self, name: str) -> str:
        path = self.path_for(name)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceUnavailable(
                f"Catalog file unreadable: {path}",
                source=self.source_name,
                key=name,
                original_error=e,
            ) from e

    async def close(self) -> None:
        pass
