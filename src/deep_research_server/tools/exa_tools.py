"""Neural search, similar-page discovery and batch content retrieval via Exa.

Like the WebSearchAPI tools, failures come back to the model as ``Error:``
strings.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, List, Literal, Optional

from exa_py import Exa
from langchain_core.tools import tool

from ..config import get_settings
from ..streaming import to_jsonable

logger = logging.getLogger(__name__)

ExaCategory = Literal[
    "company",
    "research paper",
    "news",
    "pdf",
    "github",
    "tweet",
    "personal site",
    "linkedin profile",
    "financial report",
]


def _call(label: str, request: Callable[[Exa], Any]) -> str:
    settings = get_settings()
    if not settings.exa_api_key:
        return "Error: EXA_API_KEY is not set."
    try:
        response = request(Exa(api_key=settings.exa_api_key))
    except Exception as exc:
        logger.warning("Exa %s failed: %s", label, exc)
        return f"Error performing Exa {label}: {exc}"
    return json.dumps(to_jsonable(response), ensure_ascii=False)


def _without_none(**kwargs: Any) -> dict[str, Any]:
    return {key: value for key, value in kwargs.items() if value is not None}


@tool
def exa_search(
    query: str,
    num_results: int = 5,
    category: Optional[ExaCategory] = None,
    include_domains: Optional[List[str]] = None,
    start_published_date: Optional[str] = None,
) -> str:
    """Neural/semantic search. Use for deep research, papers and PDFs, company
    analysis, or when searching for concepts rather than keywords.

    Args:
        query: The search query
        num_results: Number of results to return
        category: Restrict results to one kind of source
        include_domains: Only return results from these domains
        start_published_date: ISO 8601 date; only newer results are returned
    """

    if not query or not query.strip():
        return "Error: A search query is required."
    options = _without_none(
        category=category,
        include_domains=include_domains or None,
        start_published_date=start_published_date,
    )
    return _call(
        "search",
        lambda exa: exa.search_and_contents(
            query.strip(), num_results=num_results, text=True, highlights=True, summary=True, **options
        ),
    )


@tool
def exa_find_similar(url: str, num_results: int = 5, start_published_date: Optional[str] = None) -> str:
    """Find pages semantically similar to a URL. Use to grow a bibliography from one good source."""

    if not url or not url.strip():
        return "Error: A URL is required."
    options = _without_none(start_published_date=start_published_date)
    return _call(
        "find similar",
        lambda exa: exa.find_similar_and_contents(
            url.strip(), num_results=num_results, text=True, highlights=True, summary=True, **options
        ),
    )


@tool
def exa_get_contents(
    urls: List[str],
    livecrawl: Literal["always", "fallback", "never", "preferred"] = "fallback",
) -> str:
    """Retrieve full contents for several URLs at once.

    Prefer this over visit_page for batch retrieval or when live crawling must
    be forced ("always") or avoided ("never").
    """

    cleaned = [url.strip() for url in urls or [] if isinstance(url, str) and url.strip()]
    if not cleaned:
        return "Error: At least one URL is required."
    return _call(
        "get contents",
        lambda exa: exa.get_contents(cleaned, text=True, summary=True, livecrawl=livecrawl),
    )
