"""Slack tools: read, send, react and thread status through the Slack Web API."""
import json
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from slack_sdk.web.async_client import AsyncWebClient
from slackwire.tools.registry import Tool
from slackwire.utils.logging import get_logger

logger = get_logger(__name__)

class SendMessageInput(BaseModel):
    channel: str = Field(description="The channel ID to send to")
    text: str = Field(description="The message text, in Slack mrkdwn")
    thread_ts: Optional[str] = Field(default=None, description="Timestamp of the thread to reply in, if any")

class ReadThreadInput(BaseModel):
    channel: str = Field(description="The channel ID containing the thread")
    thread_ts: str = Field(description="Timestamp of the thread's parent message")
    limit: int = Field(default=20, ge=1, le=200, description="Maximum number of messages to return")

class ReadChannelInput(BaseModel):
    channel: str = Field(description="The channel ID to read")
    limit: int = Field(default=20, ge=1, le=200, description="Maximum number of messages to return")

class AddReactionInput(BaseModel):
    channel: str = Field(description="The channel ID containing the message")
    timestamp: str = Field(description="Timestamp of the message to react to")
    emoji: str = Field(description="Emoji name without colons, e.g. thumbsup")

class SetStatusInput(BaseModel):
    channel: str = Field(description="The channel ID containing the thread")
    thread_ts: str = Field(description="Timestamp of the thread")
    status: str = Field(default="", description="Status text to show; an empty string clears the status")

def _summarize(messages: List[Dict[str, Any]]) -> str:
    return json.dumps([
        {
            "user": m.get("user") or m.get("bot_id") or "unknown",
            "text": m.get("text", ""),
            "ts": m.get("ts"),
            "thread_ts": m.get("thread_ts"),
        }
        for m in messages
    ])

def create_slack_tools(client: AsyncWebClient) -> List[Tool]:
    """Create the Slack tools bound to a Web API client."""

    async def send_message(channel: str, text: str, thread_ts: Optional[str] = None) -> str:
        kwargs = {"channel": channel, "text": text}
        if thread_ts:
            kwargs["thread_ts"] = thread_ts
        response = await client.chat_postMessage(**kwargs)
        return json.dumps({"ok": True, "channel": response.get("channel", channel), "ts": response.get("ts")})

    async def read_thread(channel: str, thread_ts: str, limit: int = 20) -> str:
        response = await client.conversations_replies(channel=channel, ts=thread_ts, limit=limit)
        return _summarize(response.get("messages", []))

    async def read_channel(channel: str, limit: int = 20) -> str:
        response = await client.conversations_history(channel=channel, limit=limit)
        # history is newest first
        return _summarize(list(reversed(response.get("messages", []))))

    async def add_reaction(channel: str, timestamp: str, emoji: str) -> str:
        await client.reactions_add(channel=channel, timestamp=timestamp, name=emoji.strip(":"))
        return f"Added :{emoji.strip(':')}: reaction"

    async def set_status(channel: str, thread_ts: str, status: str = "") -> str:
        await client.assistant_threads_setStatus(channel_id=channel, thread_ts=thread_ts, status=status)
        return "Status cleared" if not status else f"Status set to '{status}'"

    return [
        Tool(
            name="slack_send_message",
            description="Send a message to a Slack channel, optionally as a reply in a thread",
            input_model=SendMessageInput,
            implementation=send_message,
        ),
        Tool(
            name="slack_read_thread",
            description="Read the messages of a Slack thread",
            input_model=ReadThreadInput,
            implementation=read_thread,
        ),
        Tool(
            name="slack_read_channel",
            description="Read the most recent messages of a Slack channel, oldest first",
            input_model=ReadChannelInput,
            implementation=read_channel,
        ),
        Tool(
            name="slack_add_reaction",
            description="Add an emoji reaction to a Slack message",
            input_model=AddReactionInput,
            implementation=add_reaction,
        ),
        Tool(
            name="slack_set_status",
            description="Set the status shown in a Slack assistant thread. Pass an empty status to clear it.",
            input_model=SetStatusInput,
            implementation=set_status,
        ),
    ]
