"""Async client for the Jina AI search, reader and deep search APIs."""

import logging
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .config import DEFAULT_TIMEOUT, ServerConfig
from .exceptions import EmptyResponseError, UpstreamError
from .models import DeepSearchResult, PageContent, SearchResult
from .stream import fold_step, parse_event_line

logger = logging.getLogger(__name__)

SEARCH_URL = "https://s.jina.ai/"
READER_URL = "https://r.jina.ai/"
DEEPSEARCH_URL = "https://deepsearch.jina.ai/v1/chat/completions"
DEEPSEARCH_MODEL = "jina-deepsearch-v1"

# Characters encodeURIComponent leaves alone besides alphanumerics and "_.-~"
_URI_COMPONENT_SAFE = "!*'()"


class JinaClient:
    """Thin adapter over the Jina HTTP APIs.

    Every operation performs exactly one request and never retries. The client
    holds only the API key and its HTTP connection pool.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config: ServerConfig, **kwargs: Any) -> "JinaClient":
        return cls(config.get_api_key(), timeout=config.timeout, **kwargs)

    async def __aenter__(self) -> "JinaClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self, **extra: str) -> dict[str, str]:
        headers = dict(extra)
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def search(self, query: str, site: str | None = None) -> list[SearchResult]:
        """Search the web and return result summaries without page content."""
        headers = self._headers(**{"Accept": "application/json", "X-Respond-With": "no-content"})
        if site:
            headers["X-Site"] = site

        logger.debug(f"Searching: {query!r} (site={site!r})")
        response = await self._http.get(SEARCH_URL, params={"q": query}, headers=headers)
        if not response.is_success:
            raise UpstreamError("Search", response.status_code, response.reason_phrase)

        body = _json_body(response, "Search")
        entries = body.get("data") if isinstance(body, dict) else None
        if not isinstance(entries, list):
            raise UpstreamError("Search", response.status_code, "unexpected response body")

        try:
            return [SearchResult.model_validate(entry) for entry in entries]
        except ValidationError as e:
            raise UpstreamError("Search", response.status_code, f"unexpected result shape: {e}") from e

    async def scrape(self, url: str) -> PageContent:
        """Fetch a single page converted to markdown."""
        api_url = READER_URL + quote(url, safe=_URI_COMPONENT_SAFE)
        headers = self._headers(Accept="application/json")

        logger.debug(f"Scraping: {url}")
        response = await self._http.get(api_url, headers=headers)
        if not response.is_success:
            raise UpstreamError("Scrape", response.status_code, response.reason_phrase)

        body = _json_body(response, "Scrape")
        # The reader wraps its payload in "data"; accept a bare object too
        page = body.get("data", body) if isinstance(body, dict) else None
        if not isinstance(page, dict):
            raise UpstreamError("Scrape", response.status_code, "unexpected response body")

        page = {**page, "description": page.get("description") or ""}
        try:
            return PageContent.model_validate(page)
        except ValidationError as e:
            raise UpstreamError("Scrape", response.status_code, f"unexpected page shape: {e}") from e

    async def deep_search(
        self,
        query: str,
        reasoning_effort: str | None = None,
        no_direct_answer: bool | None = None,
    ) -> DeepSearchResult:
        """Run a deep search and return its final answer.

        The response is a server-sent event stream that is always consumed to
        the end; intermediate chunks may be progress-only.
        """
        payload: dict[str, Any] = {
            "model": DEEPSEARCH_MODEL,
            "messages": [{"role": "user", "content": query}],
            "stream": True,
        }
        if reasoning_effort is not None:
            payload["reasoning_effort"] = reasoning_effort
        if no_direct_answer is not None:
            payload["no_direct_answer"] = no_direct_answer

        headers = self._headers(**{"Content-Type": "application/json"})

        logger.debug(f"Deep search: {query!r} (effort={reasoning_effort})")
        last_chunk: dict[str, Any] | None = None
        async with self._http.stream("POST", DEEPSEARCH_URL, json=payload, headers=headers) as response:
            if not response.is_success:
                raise UpstreamError("Deep search", response.status_code, response.reason_phrase)
            async for line in response.aiter_lines():
                last_chunk = fold_step(last_chunk, parse_event_line(line))

        if last_chunk is None:
            raise EmptyResponseError("Deep search failed: no valid response received")

        try:
            return DeepSearchResult.from_chunk(last_chunk)
        except ValidationError as e:
            raise UpstreamError("Deep search", response.status_code, f"unexpected final chunk: {e}") from e


def _json_body(response: httpx.Response, operation: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise UpstreamError(operation, response.status_code, f"invalid JSON body: {e}") from e
