"""Bolt event handlers: Slack events become messages appended to sessions."""
from typing import Any, Dict
from slack_bolt.async_app import AsyncApp
from slack_sdk.web.async_client import AsyncWebClient
from slackwire.database.thread_store import IMMEDIATE, ThreadStore
from slackwire.errors import StoreError
from slackwire.models.session_key import coordinates_for
from slackwire.slack.normalizer import normalize_event
from slackwire.utils.logging import get_logger

logger = get_logger(__name__)

async def ingest_event(event: Dict[str, Any], client: AsyncWebClient, store: ThreadStore) -> bool:
    """Normalize an event and append it to its session.

    Returns:
        True if a message was appended, False if the event was dropped or the
        store failed (there is no response channel to report failures on)
    """
    message = await normalize_event(event, client)
    if message is None:
        return False
    coordinates = coordinates_for(message.metadata)
    try:
        thread = await store.upsert(coordinates)
        await store.append(thread.id, [message], mode=IMMEDIATE)
    except StoreError as e:
        logger.error(f"Failed to store {event.get('type')} event from channel {event.get('channel')}: {e}")
        return False
    return True

def register_event_handlers(app: AsyncApp, store: ThreadStore) -> None:
    """Register app_mention and message handlers on a Bolt app."""

    @app.event("app_mention")
    async def handle_app_mention(event, client):
        await ingest_event(event, client, store)

    @app.event("message")
    async def handle_message(event, client):
        await ingest_event(event, client, store)
