"""
Search Client
=============

Secondary web lookup used by the research agent.

This module provides the SearchClient protocol and DuckDuckGoSearchClient,
which queries the DuckDuckGo instant-answer API with `requests`.

Design Rules:
    - Network and decoding errors raise SearchError
    - The blocking HTTP call runs in a worker thread
    - Abstract (if any) first, then related topics, capped at `limit`
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol

import requests


logger = logging.getLogger(__name__)


class SearchError(Exception):
    """Raised when a search lookup fails."""
    pass


@dataclass(frozen=True)
class SearchResult:
    """One related resource."""

    title: str
    url: str
    snippet: str = ""


class SearchClient(Protocol):
    """Protocol for secondary search backends."""

    async def search(self, query: str, limit: int = 3) -> List[SearchResult]:
        ...


class DuckDuckGoSearchClient:
    """
    DuckDuckGo instant-answer search.

    Attributes:
        endpoint: API endpoint
        timeout_seconds: HTTP timeout
    """

    def __init__(
        self,
        endpoint: str = "https://api.duckduckgo.com/",
        timeout_seconds: float = 5.0,
    ) -> None:
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self._session = requests.Session()
        self._request_count: int = 0
        self._error_count: int = 0

    async def search(self, query: str, limit: int = 3) -> List[SearchResult]:
        """
        Look up related resources for a query.

        Raises:
            SearchError: On HTTP or decoding failure
        """
        if not query.strip() or limit < 1:
            return []

        self._request_count += 1
        try:
            payload = await asyncio.to_thread(self._fetch, query)
        except (requests.RequestException, ValueError) as e:
            self._error_count += 1
            raise SearchError(f"Search for {query!r} failed: {e}") from e

        results = self._parse(payload, limit)
        logger.debug(f"Search {query!r}: {len(results)} results")
        return results

    def _fetch(self, query: str) -> Dict[str, Any]:
        response = self._session.get(
            self.endpoint,
            params={
                "q": query,
                "format": "json",
                "no_html": 1,
                "skip_disambig": 1,
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _parse(payload: Dict[str, Any], limit: int) -> List[SearchResult]:
        results: List[SearchResult] = []

        abstract = payload.get("Abstract")
        if abstract:
            results.append(
                SearchResult(
                    title=payload.get("Heading") or "Overview",
                    url=payload.get("AbstractURL") or "",
                    snippet=abstract,
                )
            )

        for topic in payload.get("RelatedTopics") or []:
            if len(results) >= limit:
                break
            text = topic.get("Text") if isinstance(topic, dict) else None
            url = topic.get("FirstURL") if isinstance(topic, dict) else None
            if text and url:
                results.append(SearchResult(title=text[:100], url=url, snippet=text))

        return results[:limit]

    def get_metrics(self) -> dict:
        return {
            "request_count": self._request_count,
            "error_count": self._error_count,
        }
