"""slackwire: a Slack bridge for a tool-using language model."""
__version__ = "0.1.0"

from slackwire.models.agent import Agent, StreamUpdate, TurnResult, TurnState
from slackwire.models.message import Message
from slackwire.models.thread import Thread
from slackwire.database.thread_store import ThreadStore
from slackwire.tools.registry import Tool, ToolFailure, ToolRegistry
from slackwire.router import Router

__all__ = [
    "Agent",
    "StreamUpdate",
    "TurnResult",
    "TurnState",
    "Message",
    "Thread",
    "ThreadStore",
    "Tool",
    "ToolFailure",
    "ToolRegistry",
    "Router",
]
