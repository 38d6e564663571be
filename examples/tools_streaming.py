#!/usr/bin/env python3

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from slackwire.models.agent import Agent, UpdateType
from slackwire.models.message import Message
from slackwire.tools.local import create_local_tools
from slackwire.tools.registry import ToolRegistry
from slackwire.tools.web import ExaSearch
from slackwire.utils.logging import get_logger
from slack_sdk.web.async_client import AsyncWebClient
import asyncio
import weave
import sys

logger = get_logger(__name__)

try:
    if os.getenv("WANDB_API_KEY"):
        weave.init("slackwire")
        logger.info("Weave tracing initialized successfully")
except Exception as e:
    logger.warning(f"Failed to initialize weave tracing: {e}. Continuing without weave.")

# Only the local tools; no Slack routing, so no status is signalled
tools = ToolRegistry()
for tool in create_local_tools(AsyncWebClient(token=os.getenv("SLACK_BOT_TOKEN")), ExaSearch(os.getenv("EXA_API_KEY"))):
    tools.register(tool, source="local")

agent = Agent(
    model_name=os.getenv("SLACKWIRE_MODEL", "gpt-4.1"),
    purpose="To answer questions about today's date and the news",
    tools=tools,
)

async def main():
    conversations = [
        "How do you say 'hello' in Spanish?",
        "What's today's date, and what is the top AI story today?",
    ]

    messages = []
    for user_input in conversations:
        print(f"\nUser: {user_input}")
        messages.append(Message.text("user", user_input))

        async for update in agent.go_stream(messages):
            if update.type == UpdateType.CONTENT_CHUNK:
                print(update.data, end="", flush=True)
            elif update.type in (UpdateType.ASSISTANT_MESSAGE, UpdateType.TOOL_MESSAGE):
                messages.append(update.data)
                for result in update.data.tool_results:
                    print(f"\nTool ({result.tool_name}): {result.output[:200]}")
            elif update.type == UpdateType.ERROR:
                print(f"\nError: {update.data}")
        print("\n" + "-" * 50)

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting gracefully...")
        sys.exit(0)
