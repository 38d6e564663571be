import json
import httpx
import pytest
from unittest.mock import patch
from slackwire.tools.registry import ToolFailure
from slackwire.tools.web import (
    EXA_SEARCH_URL,
    ExaSearch,
    create_web_search_tool,
    normalize_result,
)

def test_normalize_result_defaults():
    result = normalize_result({"title": "Launch", "url": "https://example.com", "text": "x" * 500})
    assert result["author"] == "Unknown"
    assert result["published_date"] == "Date not available"
    assert len(result["summary"]) == 300
    assert result["score"] is None

@pytest.mark.asyncio
async def test_unconfigured_search_fails_without_request():
    """Test that a missing API key is reported to the model and no request is made"""
    tool = create_web_search_tool(ExaSearch(api_key=None))
    with patch("httpx.AsyncClient") as mock_client:
        result = await tool.execute({"query": "latest news"})
    mock_client.assert_not_called()
    assert isinstance(result, ToolFailure)
    assert "EXA_API_KEY" in result

@pytest.mark.asyncio
async def test_search_request_and_results():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"results": [
            {
                "title": "AI news",
                "url": "https://example.com/ai",
                "author": "Reporter",
                "publishedDate": "2025-03-14",
                "text": "Something happened",
                "score": 0.9,
            },
            {"title": "Untitled", "url": "https://example.com/2"},
        ]})

    search = ExaSearch(api_key="test-key", transport=httpx.MockTransport(handler))
    tool = create_web_search_tool(search)
    result = json.loads(await tool.execute({"query": "AI", "num_results": 2}))

    request = requests[0]
    assert str(request.url) == EXA_SEARCH_URL
    assert request.headers["x-api-key"] == "test-key"
    assert json.loads(request.content) == {
        "query": "AI",
        "numResults": 2,
        "contents": {"text": {"maxCharacters": 1000}},
    }

    assert result["query"] == "AI"
    first, second = result["results"]
    assert first == {
        "title": "AI news",
        "url": "https://example.com/ai",
        "author": "Reporter",
        "published_date": "2025-03-14",
        "summary": "Something happened",
        "score": 0.9,
    }
    assert second["author"] == "Unknown"

@pytest.mark.asyncio
async def test_search_http_error():
    search = ExaSearch(
        api_key="test-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(401, json={"error": "bad key"})),
    )
    result = await create_web_search_tool(search).execute({"query": "AI"})
    assert isinstance(result, ToolFailure)
    assert result.startswith("Web search failed:")
