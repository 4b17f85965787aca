"""Map validated tool arguments to one ScrapingBee API call."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

import httpx
from pydantic import BaseModel

from scrapingbee_mcp._version import __version__
from scrapingbee_mcp.config import GatewayConfig
from scrapingbee_mcp.errors import UpstreamNetworkError, UpstreamTimeoutError
from scrapingbee_mcp.logging import get_logger
from scrapingbee_mcp.models import UpstreamResponse

_logger = get_logger("translator")

USER_AGENT = f"scrapingbee-mcp/{__version__}"


def serialize_value(value: Any) -> str:
    """Render a parameter value the way the API expects it in a query string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query(
    params: BaseModel,
    fields: Iterable[str],
    api_key: str,
    fixed: Iterable[tuple[str, str]] = (),
) -> dict[str, str]:
    """Build the upstream query parameters.

    Only fields that were actually supplied are sent; None and empty
    strings are left out rather than sent blank.
    """
    query = {"api_key": api_key}
    for name in fields:
        value = getattr(params, name, None)
        if value is None or value == "":
            continue
        query[name] = serialize_value(value)
    query.update(fixed)
    return query


def redact(query: dict[str, str]) -> dict[str, str]:
    """Copy of *query* that is safe to log or echo back to the caller."""
    return {k: v for k, v in query.items() if k != "api_key"}


class ScrapingBeeClient:
    """Async client for the ScrapingBee API.

    One instance serves one tool invocation: a single GET, no retries.
    """

    def __init__(self, config: GatewayConfig):
        self.config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ScrapingBeeClient":
        self._client = httpx.AsyncClient(
            http2=True,
            timeout=httpx.Timeout(self.config.timeout),
            headers={"User-Agent": USER_AGENT},
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self._client:
            await self._client.aclose()

    async def get(self, query: dict[str, str]) -> UpstreamResponse:
        if not self._client:
            raise RuntimeError("ScrapingBeeClient not initialized. Use async with.")

        timeout = self.config.timeout
        try:
            # httpx timeouts are per phase; wait_for bounds the whole exchange.
            resp = await asyncio.wait_for(
                self._client.get(self.config.api_url, params=query),
                timeout=timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise UpstreamTimeoutError(
                f"ScrapingBee request timed out after {timeout:g} seconds",
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamNetworkError(
                f"Network error calling ScrapingBee API: {exc}",
                cause=exc,
            ) from exc

        cost = resp.headers.get("spb-cost")
        _logger.debug(
            "ScrapingBee answered %d for %s (cost=%s)",
            resp.status_code,
            query.get("url"),
            cost,
        )
        return UpstreamResponse(
            status_code=resp.status_code,
            headers={k.lower(): v for k, v in resp.headers.items()},
            content=resp.content,
        )
