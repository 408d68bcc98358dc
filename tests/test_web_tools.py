"""Tests for the web search and scrape tools with the HTTP layer mocked."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from deep_research_server.config import Settings
from deep_research_server.tools.web_tools import visit_page, web_search


@pytest.fixture
def configured(settings):
    with patch("deep_research_server.tools.web_tools.get_settings", return_value=settings):
        yield settings


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


class TestWebSearch:
    def test_posts_query_with_bearer_key(self, configured):
        with patch("deep_research_server.tools.web_tools.httpx.post", return_value=_response(payload={"organic": []})) as post:
            result = web_search.invoke({"query": "  solar panels  ", "max_results": 50})

        assert json.loads(result) == {"organic": []}
        args, kwargs = post.call_args
        assert args[0] == "https://api.websearchapi.ai/ai-search"
        assert kwargs["json"] == {"query": "solar panels", "maxResults": 20, "includeContent": True}
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"

    def test_missing_key(self):
        settings = Settings(_env_file=None)
        with patch("deep_research_server.tools.web_tools.get_settings", return_value=settings):
            assert web_search.invoke({"query": "x"}) == "Error: WEBSEARCHAPI_KEY is not set."

    def test_blank_query(self, configured):
        assert web_search.invoke({"query": "   "}) == "Error: A search query is required."

    def test_http_error_is_returned_as_string(self, configured):
        with patch(
            "deep_research_server.tools.web_tools.httpx.post", side_effect=httpx.ConnectError("connection refused")
        ):
            result = web_search.invoke({"query": "x"})

        assert result == "Error performing web search: connection refused"

    def test_non_200_status(self, configured):
        with patch("deep_research_server.tools.web_tools.httpx.post", return_value=_response(status_code=429)):
            assert web_search.invoke({"query": "x"}) == "Error: web search request failed with status 429"


class TestVisitPage:
    def test_scrape_request(self, configured):
        with patch("deep_research_server.tools.web_tools.httpx.post", return_value=_response(payload={"markdown": "# Hi"})) as post:
            result = visit_page.invoke({"url": "https://example.com"})

        assert json.loads(result) == {"markdown": "# Hi"}
        assert post.call_args.args[0].endswith("/scrape")
        assert post.call_args.kwargs["json"] == {
            "url": "https://example.com",
            "returnFormat": "markdown",
            "engine": "browser",
        }

    def test_non_json_response(self, configured):
        with patch("deep_research_server.tools.web_tools.httpx.post", return_value=_response()):
            assert visit_page.invoke({"url": "https://example.com"}) == "Error: web scrape returned a non-JSON response"
