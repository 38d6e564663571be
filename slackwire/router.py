"""Inbound request routing: scheduled-task triggers and Slack traffic."""
from typing import Any
from fastapi import Request
from fastapi.responses import PlainTextResponse, Response
from slackwire.config import DEFAULT_NEWS_CHANNEL, DEFAULT_TASK_PATH
from slackwire.database.thread_store import ENQUEUE, ThreadStore
from slackwire.models.message import Message
from slackwire.models.session_key import scheduled_coordinates
from slackwire.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TASK_NAME = "daily-news"

NEWS_INSTRUCTION = (
    "Generate a daily news summary and post it to Slack channel {channel}. "
    "Use your tools to research the latest news and create an engaging summary. "
    "After analyzing, post the formatted summary to the Slack channel using the post_to_slack_channel tool."
)

class Router:
    """Single entry point for inbound HTTP requests.

    ``POST <task_path>`` starts a scheduled news run in a fresh session. The
    check runs before anything else so the Slack handler never shadows it.
    Every other request goes to the Slack request handler unchanged.
    """

    def __init__(
        self,
        store: ThreadStore,
        slack_handler: Any,
        task_path: str = DEFAULT_TASK_PATH,
        task_name: str = DEFAULT_TASK_NAME,
        news_channel: str = DEFAULT_NEWS_CHANNEL,
    ):
        self.store = store
        self.slack_handler = slack_handler
        self.task_path = task_path
        self.task_name = task_name
        self.news_channel = news_channel

    def is_scheduled_trigger(self, request: Request) -> bool:
        return request.method == "POST" and request.url.path == self.task_path

    async def route(self, request: Request) -> Response:
        logger.info(f"Received {request.method} request to {request.url.path}")
        if self.is_scheduled_trigger(request):
            return await self.handle_scheduled_trigger()
        return await self.slack_handler.handle(request)

    async def handle_scheduled_trigger(self) -> Response:
        logger.info(f"Processing {self.task_path} webhook...")
        try:
            thread = await self.store.upsert(scheduled_coordinates(self.task_name))
            message = Message.text("user", NEWS_INSTRUCTION.format(channel=self.news_channel))
            await self.store.append(thread.id, [message], mode=ENQUEUE)
        except Exception as e:
            logger.error(f"Error posting news summary: {e}")
            return PlainTextResponse(f"Error posting summary: {e}", status_code=500)
        return PlainTextResponse("Summary request queued successfully", status_code=200)
