"""Web search through the Exa search API."""
import json
from typing import Any, Dict, List, Optional
import httpx
from pydantic import BaseModel, Field
from slackwire.tools.registry import Tool, ToolFailure
from slackwire.utils.logging import get_logger

logger = get_logger(__name__)

EXA_API_KEY_ENV = "EXA_API_KEY"
EXA_SEARCH_URL = "https://api.exa.ai/search"
SUMMARY_CHARS = 300

class ExaSearch:
    """Minimal async client for Exa's search endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = EXA_SEARCH_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: str, num_results: int = 10) -> List[Dict[str, Any]]:
        """Run a search and return normalized results.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                self.base_url,
                headers={"x-api-key": self.api_key, "Content-Type": "application/json"},
                json={
                    "query": query,
                    "numResults": num_results,
                    "contents": {"text": {"maxCharacters": 1000}},
                },
            )
            response.raise_for_status()
            data = response.json()
        return [normalize_result(item) for item in data.get("results", []) if isinstance(item, dict)]

def normalize_result(item: Dict[str, Any]) -> Dict[str, Any]:
    summary = item.get("summary") or item.get("text") or ""
    return {
        "title": item.get("title") or "",
        "url": item.get("url") or "",
        "author": item.get("author") or "Unknown",
        "published_date": item.get("publishedDate") or "Date not available",
        "summary": summary[:SUMMARY_CHARS],
        "score": item.get("score"),
    }

class WebSearchInput(BaseModel):
    query: str = Field(description="The search query")
    num_results: int = Field(default=10, ge=1, le=100, description="Number of results to return")

def create_web_search_tool(search: ExaSearch) -> Tool:

    async def web_search(query: str, num_results: int = 10) -> str:
        if not search.configured:
            logger.warning(f"web_search called without {EXA_API_KEY_ENV}")
            return ToolFailure(f"Web search is not configured: {EXA_API_KEY_ENV} is not set")
        try:
            results = await search.search(query, num_results)
        except httpx.HTTPError as e:
            logger.error(f"Web search failed for '{query}': {e}")
            return ToolFailure(f"Web search failed: {e}")
        logger.debug(f"Web search for '{query}' returned {len(results)} results")
        return json.dumps({"query": query, "results": results})

    return Tool(
        name="web_search",
        description=(
            "Search the web for current information. Returns titles, URLs, authors, "
            "publication dates, short summaries and relevance scores."
        ),
        input_model=WebSearchInput,
        implementation=web_search,
    )
