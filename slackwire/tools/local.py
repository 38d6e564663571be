"""Tools defined by slackwire itself rather than the Slack tool set."""
import json
from datetime import datetime, UTC
from typing import List
from pydantic import BaseModel, Field
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient
from slackwire.tools.registry import Tool, ToolFailure
from slackwire.tools.web import ExaSearch, create_web_search_tool
from slackwire.utils.logging import get_logger

logger = get_logger(__name__)

POST_SUCCESS = "Message posted successfully"

class PostToChannelInput(BaseModel):
    channel: str = Field(description="The channel ID to post to")
    text: str = Field(description="The message text to post")

class CurrentDateInput(BaseModel):
    pass

def current_date(now: datetime = None) -> dict:
    """The current time as long-form text, ISO 8601 and a Unix timestamp."""
    now = now or datetime.now(UTC)
    return {
        "formatted": now.strftime("%A, %B %d, %Y at %H:%M:%S %Z"),
        "iso": now.isoformat(),
        "timestamp": int(now.timestamp()),
    }

def create_local_tools(client: AsyncWebClient, search: ExaSearch) -> List[Tool]:
    """Create post_to_slack_channel, get_current_date and web_search."""

    async def post_to_channel(channel: str, text: str) -> str:
        try:
            await client.chat_postMessage(
                channel=channel,
                text=text,
                unfurl_links=False,
                unfurl_media=False,
            )
        except SlackApiError as e:
            error = e.response.get("error", str(e)) if e.response is not None else str(e)
            logger.error(f"Failed to post to {channel}: {error}")
            return ToolFailure(f"Error posting message: {error}")
        except Exception as e:
            logger.error(f"Failed to post to {channel}: {e}")
            return ToolFailure(f"Error posting message: {e}")
        logger.info(f"Posted message to channel {channel}")
        return POST_SUCCESS

    async def get_current_date() -> str:
        return json.dumps(current_date())

    return [
        Tool(
            name="post_to_slack_channel",
            description="Post a message to a Slack channel",
            input_model=PostToChannelInput,
            implementation=post_to_channel,
        ),
        Tool(
            name="get_current_date",
            description="Get the current date and time as readable text, ISO 8601 and a Unix timestamp",
            input_model=CurrentDateInput,
            implementation=get_current_date,
        ),
        create_web_search_tool(search),
    ]
