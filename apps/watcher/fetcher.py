"""
Hacker News Fetcher - Ranked List and Item Detail Reads

Two read operations against the configured base URL:
- topstories.json  -> ordered list of ranked item IDs
- item/{id}.json   -> one item's id, score and descendants

Each call is exactly one HTTP request: no retries, no caching.

Usage:
    from apps.watcher.fetcher import HNFetcher

    async with HNFetcher() as fetcher:
        ids = await fetcher.list_top_ids()
        detail = await fetcher.get_detail(ids[0])
"""

import logging
from typing import Any

import httpx
import orjson
from pydantic import ValidationError

from utils.config import settings
from utils.schemas import ItemDetail, TopStoryIds

logger = logging.getLogger(__name__)

TOP_STORIES_PATH = "topstories.json"
ITEM_PATH = "item/{id}.json"


class TransportError(Exception):
    """Raised when the upstream service cannot be reached or answers with an error status."""


class DecodeError(ValueError):
    """Raised when an upstream response body does not have the expected shape."""


class HNFetcher:
    """Async client for the two Hacker News read endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize fetcher.

        Args:
            base_url: API base URL, defaults to settings.HN_BASE_URL
            timeout: Request timeout in seconds, defaults to settings.API_TIMEOUT
            client: Pre-built httpx client (tests inject a MockTransport here)
        """
        self.base_url = base_url or settings.HN_BASE_URL
        self.timeout = timeout if timeout is not None else settings.API_TIMEOUT
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)

    async def __aenter__(self) -> "HNFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def _get(self, path: str) -> Any:
        try:
            response = await self.client.get(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Upstream returned HTTP {e.response.status_code} for {e.request.url}"
            ) from e
        except httpx.DecodingError as e:
            raise DecodeError(f"Response from {path} could not be decoded: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"Request to {path} failed: {e!r}") from e

        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise DecodeError(f"Response from {response.url} is not valid JSON: {e}") from e

    async def list_top_ids(self) -> list[int]:
        """
        Fetch the current ranked list of item IDs.

        Returns:
            IDs in rank order, exactly as returned upstream

        Raises:
            TransportError: On network failure, timeout or error status
            DecodeError: If the body is not a JSON array of non-negative integers
        """
        payload = await self._get(TOP_STORIES_PATH)
        try:
            ids = TopStoryIds.validate_python(payload)
        except ValidationError as e:
            raise DecodeError(f"Unexpected {TOP_STORIES_PATH} payload: {e}") from e

        logger.debug("Fetched ranked IDs", extra={"count": len(ids)})
        return ids

    async def get_detail(self, item_id: int) -> ItemDetail:
        """
        Fetch one item's detail.

        Args:
            item_id: Ranked item ID

        Returns:
            ItemDetail with score/comment count defaulted to 0 when absent

        Raises:
            TransportError: On network failure, timeout or error status
            DecodeError: If the body is not an item object
        """
        path = ITEM_PATH.format(id=item_id)
        payload = await self._get(path)
        try:
            return ItemDetail.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(f"Unexpected {path} payload: {e}") from e
