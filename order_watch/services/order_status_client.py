"""
Order tracker HTTP client.
Looks up the current order for a phone number at one tracker endpoint.
"""

import asyncio

import httpx
from pydantic import ValidationError

from order_watch.config import settings
from order_watch.infrastructure.observability.logging import get_logger
from order_watch.models.api.order_response import NoOrder, TrackedOrder, parse_order_status_response
from order_watch.models.domain.config_domain import Target

logger = get_logger(__name__)

RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class FetchError(Exception):
    """Raised when a tracker lookup fails or returns an unusable payload."""

    def __init__(
        self,
        message: str,
        target: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.target = target
        self.status_code = status_code


class OrderStatusClient:
    """
    Client for tracker order lookups.

    Retries transport errors and throttling/server responses with
    exponential backoff before giving up with a FetchError.
    """

    def __init__(
        self,
        timeout: float = settings.FETCH_TIMEOUT_SECONDS,
        max_retries: int = settings.FETCH_MAX_RETRIES,
        backoff_factor: float = settings.FETCH_BACKOFF_FACTOR,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.max_retries = max(1, max_retries)
        self.backoff_factor = backoff_factor
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=50),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _get_with_retry(self, url: str) -> httpx.Response:
        for attempt in range(1, self.max_retries + 1):
            try:
                response = await self._client.get(url)
                if response.status_code in RETRY_STATUS_CODES and attempt < self.max_retries:
                    backoff = self.backoff_factor * (2 ** (attempt - 1))
                    logger.debug(
                        "Tracker retrying request",
                        attempt=attempt,
                        status_code=response.status_code,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                return response
            except httpx.RequestError as e:
                if attempt >= self.max_retries:
                    raise
                backoff = self.backoff_factor * (2 ** (attempt - 1))
                logger.debug(
                    "Tracker request error, retrying",
                    attempt=attempt,
                    error=str(e),
                    backoff_seconds=backoff,
                )
                await asyncio.sleep(backoff)
        raise RuntimeError("Tracker retry loop exhausted")

    async def fetch(self, target: Target, phone_dashed: str) -> TrackedOrder | NoOrder:
        """
        Fetch the current order for a phone number.

        Args:
            target: Tracker endpoint
            phone_dashed: Phone number rendered as ``555-123-4567``

        Returns:
            TrackedOrder | NoOrder: Parsed tracker response

        Raises:
            FetchError: On transport failure, error status or malformed payload
        """
        url = f"{target.url}{phone_dashed}"

        try:
            response = await self._get_with_retry(url)
        except httpx.HTTPError as e:
            raise FetchError(f"Tracker request failed: {e}", target=target.name) from e

        if not response.is_success:
            raise FetchError(
                f"Tracker returned HTTP {response.status_code}",
                target=target.name,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(
                f"Invalid response format: {e}",
                target=target.name,
                status_code=response.status_code,
            ) from e

        try:
            result = parse_order_status_response(payload)
        except ValidationError as e:
            raise FetchError(
                f"Unrecognized tracker payload: {e.error_count()} validation errors",
                target=target.name,
                status_code=response.status_code,
            ) from e

        logger.debug(
            "Tracker lookup completed",
            target=target.name,
            has_order=isinstance(result, TrackedOrder),
        )
        return result
