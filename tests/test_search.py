"""
Search Client Tests
===================

Tests for DuckDuckGoSearchClient with the HTTP session stubbed out.
"""

import pytest
import requests

from clippy_agent.search import DuckDuckGoSearchClient, SearchError


PAYLOAD = {
    "Heading": "Asyncio",
    "Abstract": "asyncio is a library to write concurrent code.",
    "AbstractURL": "https://docs.python.org/3/library/asyncio.html",
    "RelatedTopics": [
        {"Text": "Coroutines and Tasks", "FirstURL": "https://duckduckgo.com/Coroutines"},
        {"Name": "Category group without text"},
        {"Text": "Event loop", "FirstURL": "https://duckduckgo.com/Event_loop"},
        {"Text": "Futures", "FirstURL": "https://duckduckgo.com/Futures"},
    ],
}


class StubResponse:
    def __init__(self, payload=None, status_error=None):
        self.payload = payload
        self.status_error = status_error

    def raise_for_status(self):
        if self.status_error:
            raise self.status_error

    def json(self):
        if self.payload is None:
            raise ValueError("Expecting value")
        return self.payload


class StubSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.params = []

    def get(self, url, params=None, timeout=None):
        self.params.append(params)
        if self.error:
            raise self.error
        return self.response


def client_with(session):
    client = DuckDuckGoSearchClient(timeout_seconds=1.0)
    client._session = session
    return client


class TestDuckDuckGoSearchClient:

    @pytest.mark.asyncio
    async def test_abstract_first_then_topics(self):
        session = StubSession(StubResponse(PAYLOAD))
        client = client_with(session)

        results = await client.search("python asyncio", limit=3)

        assert [r.title for r in results] == ["Asyncio", "Coroutines and Tasks", "Event loop"]
        assert results[0].url == "https://docs.python.org/3/library/asyncio.html"
        assert session.params[0]["q"] == "python asyncio"
        assert session.params[0]["format"] == "json"

    @pytest.mark.asyncio
    async def test_topics_only(self):
        payload = {"RelatedTopics": PAYLOAD["RelatedTopics"]}
        results = await client_with(StubSession(StubResponse(payload))).search("asyncio")

        assert [r.url for r in results] == [
            "https://duckduckgo.com/Coroutines",
            "https://duckduckgo.com/Event_loop",
            "https://duckduckgo.com/Futures",
        ]

    @pytest.mark.asyncio
    async def test_empty_query_skips_request(self):
        session = StubSession(StubResponse(PAYLOAD))

        assert await client_with(session).search("   ") == []
        assert session.params == []

    @pytest.mark.asyncio
    async def test_network_error_raises_search_error(self):
        client = client_with(StubSession(error=requests.ConnectionError("unreachable")))

        with pytest.raises(SearchError):
            await client.search("asyncio")

        assert client.get_metrics() == {"request_count": 1, "error_count": 1}

    @pytest.mark.asyncio
    async def test_http_error_raises_search_error(self):
        response = StubResponse(PAYLOAD, status_error=requests.HTTPError("500 Server Error"))

        with pytest.raises(SearchError):
            await client_with(StubSession(response)).search("asyncio")

    @pytest.mark.asyncio
    async def test_bad_json_raises_search_error(self):
        with pytest.raises(SearchError):
            await client_with(StubSession(StubResponse(None))).search("asyncio")
