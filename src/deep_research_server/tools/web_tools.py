"""Search and scrape tools backed by WebSearchAPI.

Failures never raise into the graph; the model receives an ``Error:`` string
and decides how to continue.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from langchain_core.tools import tool

from ..config import get_settings

logger = logging.getLogger(__name__)


def _post(endpoint: str, body: dict[str, Any], label: str) -> str:
    settings = get_settings()
    if not settings.websearchapi_key:
        return "Error: WEBSEARCHAPI_KEY is not set."

    url = f"{settings.websearchapi_base_url.rstrip('/')}/{endpoint}"
    try:
        response = httpx.post(
            url,
            json=body,
            headers={"Authorization": f"Bearer {settings.websearchapi_key}"},
            timeout=settings.websearch_timeout,
        )
    except httpx.HTTPError as exc:
        logger.warning("%s request failed: %s", label, exc)
        return f"Error performing {label}: {exc}"

    if response.status_code != 200:
        return f"Error: {label} request failed with status {response.status_code}"

    try:
        data = response.json()
    except ValueError:
        return f"Error: {label} returned a non-JSON response"
    return json.dumps(data, ensure_ascii=False)


@tool
def web_search(query: str, max_results: int = 5) -> str:
    """Search the web. Best for current events, specific facts and finding sources.

    Args:
        query: The search query
        max_results: Maximum number of results to return
    """

    if not query or not query.strip():
        return "Error: A search query is required."
    body = {"query": query.strip(), "maxResults": max(1, min(max_results, 20)), "includeContent": True}
    return _post("ai-search", body, "web search")


@tool
def visit_page(url: str) -> str:
    """Read a specific URL found in search results and return its content as markdown."""

    if not url or not url.strip():
        return "Error: A URL is required."
    body = {"url": url.strip(), "returnFormat": "markdown", "engine": "browser"}
    return _post("scrape", body, "web scrape")
