"""
Search tools backed by web services: Wikipedia, Google Custom Search
and the full-text search of Simon Willison's blog (Datasette).

The tools take the search text as input. Network failures and
unexpected bodies are reported in the returned string.
"""

import os
from typing import Any

import requests

from .base import Tool

REQUEST_TIMEOUT = 30
NO_RESULTS = "No results found"


def _get_json(url: str, params: dict[str, Any]) -> Any:
    """GET url and decode the JSON body. Raises requests exceptions
    and ValueError (invalid JSON)."""
    response = requests.get(url, params=params, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()


class WikipediaTool(Tool):
    name = "wikipedia"
    description = (
        "Returns a summary from searching Wikipedia. "
        "Example: wikipedia: Django"
    )

    API_URL = "https://en.wikipedia.org/w/api.php"

    def call(self, input: str) -> str:
        query = input.strip()
        if not query:
            return "Error: a search text is required"
        try:
            data = _get_json(
                self.API_URL,
                {
                    "action": "query",
                    "list": "search",
                    "srsearch": query,
                    "format": "json",
                },
            )
        except (requests.RequestException, ValueError) as e:
            return f"Error searching Wikipedia: {e}"

        try:
            return str(data["query"]["search"][0]["snippet"])
        except (KeyError, IndexError, TypeError):
            return NO_RESULTS


class GoogleSearchTool(Tool):
    name = "google_search"
    description = (
        "Returns the top 10 results from Google Custom Search API, "
        "each with a title, URL, and description"
    )

    API_URL = "https://www.googleapis.com/customsearch/v1"

    def __init__(
        self,
        api_key: str | None = None,
        search_engine_id: str | None = None,
    ) -> None:
        self.api_key = api_key or os.environ.get("GOOGLE_SEARCH_API_KEY")
        self.search_engine_id = search_engine_id or os.environ.get(
            "GOOGLE_SEARCH_ENGINE_ID"
        )

    def call(self, input: str) -> str:
        query = input.strip()
        if not query:
            return "Error: a search text is required"
        if not (self.api_key and self.search_engine_id):
            return (
                "Error: Google search is not configured. Set "
                "GOOGLE_SEARCH_API_KEY and GOOGLE_SEARCH_ENGINE_ID."
            )
        try:
            data = _get_json(
                self.API_URL,
                {
                    "key": self.api_key,
                    "cx": self.search_engine_id,
                    "q": query,
                    "num": 10,
                },
            )
        except (requests.RequestException, ValueError) as e:
            return f"Error searching Google: {e}"

        items = data.get("items") if isinstance(data, dict) else None
        if not items:
            return NO_RESULTS
        return format_search_results(data)


def format_search_results(data: dict[str, Any]) -> str:
    """Text listing of a Custom Search response."""
    info = data.get("searchInformation", {})
    output = [
        f"Found {info.get('formattedTotalResults')} results in "
        f"{info.get('formattedSearchTime')} seconds\n"
    ]
    for index, item in enumerate(data["items"][:10], start=1):
        output.append(f"{index}. {item.get('title')}")
        output.append(f"URL: {item.get('link')}")
        output.append(f"Description: {item.get('snippet')}")
        if item.get("fileFormat"):
            output.append(f"File Format: {item['fileFormat']}")
        if item.get("displayLink"):
            output.append(f"Site Name: {item['displayLink']}")
        metatags = item.get("pagemap", {}).get("metatags") or [{}]
        if metatags[0].get("og:description"):
            output.append(
                f"Description (meta): {metatags[0]['og:description']}"
            )
        output.append("")
    return "\n".join(output)


class SimonBlogSearchTool(Tool):
    name = "simon_blog_search"
    description = (
        "Searches Simon Willison's blog and returns the best matching "
        "entry (title and the beginning of its text)"
    )

    API_URL = "https://datasette.simonwillison.net/simonwillisonblog.json"
    SQL = """
select
  blog_entry.title || ': ' || substr(html_strip_tags(blog_entry.body), 0, 1000) as text,
  blog_entry.created
from
  blog_entry join blog_entry_fts on blog_entry.rowid = blog_entry_fts.rowid
where
  blog_entry_fts match escape_fts(:q)
order by
  blog_entry_fts.rank
limit
  1
"""

    def call(self, input: str) -> str:
        query = input.strip()
        if not query:
            return "Error: a search text is required"
        try:
            rows = _get_json(
                self.API_URL,
                {"sql": self.SQL, "_shape": "array", "q": query},
            )
        except (requests.RequestException, ValueError) as e:
            return f"Error searching the blog: {e}"

        if not rows or not isinstance(rows, list):
            return NO_RESULTS
        return str(rows[0].get("text") or NO_RESULTS)
