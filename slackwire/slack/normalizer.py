"""Convert Slack events into session messages."""
from typing import Any, Dict, Optional
from slack_sdk.web.async_client import AsyncWebClient
from slackwire.models.message import Message, TextPart
from slackwire.models.session_key import SLACK_PLATFORM
from slackwire.utils.logging import get_logger

logger = get_logger(__name__)

APP_MENTION = "app_mention"
DIRECT_MESSAGE = "direct_message"

def is_self_authored_or_edit(event: Dict[str, Any]) -> bool:
    """Bot posts, edits, deletions and other subtypes never start a turn."""
    return bool(event.get("subtype") or event.get("bot_id") or event.get("edited"))

async def is_direct_message_channel(client: AsyncWebClient, channel: str) -> bool:
    """Look up whether a channel is an IM.

    A failed lookup counts as "not a direct message"; the event is dropped.
    """
    try:
        response = await client.conversations_info(channel=channel)
    except Exception as e:
        logger.warning(f"Channel lookup failed for {channel}, dropping event: {e}")
        return False
    return bool((response.get("channel") or {}).get("is_im"))

def build_message(event: Dict[str, Any], event_type: str) -> Message:
    channel = event["channel"]
    ts = event.get("ts")
    thread_ts = event.get("thread_ts") or ts
    user = event.get("user")
    metadata = {
        "platform": SLACK_PLATFORM,
        "event_type": event_type,
        "channel": channel,
        "thread_ts": thread_ts,
        "ts": ts,
        "user": user,
    }
    where = "a direct message" if event_type == DIRECT_MESSAGE else "a mention"
    context = (
        f"[Slack {where} from <@{user}> in channel {channel}, ts={ts}, thread_ts={thread_ts}. "
        f"Reply in this thread.]"
    )
    return Message(
        role="user",
        parts=[TextPart(text=event.get("text") or ""), TextPart(text=context)],
        metadata=metadata,
    )

async def normalize_event(event: Dict[str, Any], client: AsyncWebClient) -> Optional[Message]:
    """Convert a Slack event into a user message.

    Args:
        event: The event payload (the "event" object of an Events API callback)
        client: Web API client used to resolve the channel type of message events

    Returns:
        The message, or None when the event must not start a turn
    """
    event_type = event.get("type")
    if not event.get("channel"):
        logger.debug(f"Dropping {event_type} event without a channel")
        return None

    if event_type == APP_MENTION:
        if is_self_authored_or_edit(event):
            logger.debug(f"Dropping mention with subtype={event.get('subtype')} bot_id={event.get('bot_id')}")
            return None
        return build_message(event, APP_MENTION)

    if event_type == "message":
        if is_self_authored_or_edit(event):
            logger.debug(f"Dropping message event with subtype={event.get('subtype')} bot_id={event.get('bot_id')}")
            return None
        if not await is_direct_message_channel(client, event["channel"]):
            logger.debug(f"Dropping message in non-IM channel {event['channel']}")
            return None
        return build_message(event, DIRECT_MESSAGE)

    logger.debug(f"Ignoring unsupported event type {event_type}")
    return None
