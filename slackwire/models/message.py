"""Conversation messages and their content parts."""
import uuid
from datetime import datetime, UTC
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str

class ToolCallPart(BaseModel):
    """A request from the model to run a tool."""
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)

class ToolResultPart(BaseModel):
    """The outcome of a tool call, success or failure."""
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    output: str
    is_error: bool = False

Part = Annotated[Union[TextPart, ToolCallPart, ToolResultPart], Field(discriminator="type")]

class Message(BaseModel):
    """One turn of conversation content.

    Metadata carries the platform routing information (channel, thread_ts)
    needed to reply to the message without any other context.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Literal["user", "assistant", "tool"]
    parts: List[Part] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    sequence: Optional[int] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def text(cls, role: str, text: str, metadata: Optional[Dict[str, Any]] = None) -> "Message":
        """Create a message holding a single text part."""
        return cls(role=role, parts=[TextPart(text=text)], metadata=metadata)

    @property
    def content(self) -> str:
        """All text parts joined by blank lines."""
        return "\n\n".join(part.text for part in self.parts if isinstance(part, TextPart))

    @property
    def tool_calls(self) -> List[ToolCallPart]:
        return [part for part in self.parts if isinstance(part, ToolCallPart)]

    @property
    def tool_results(self) -> List[ToolResultPart]:
        return [part for part in self.parts if isinstance(part, ToolResultPart)]

    def with_parts(self, *parts: Part) -> "Message":
        """Return a copy of this message with extra parts appended.

        The original message and its part list are left untouched.
        """
        return self.model_copy(update={"parts": [*self.parts, *parts]})

    def routing(self) -> Optional[Dict[str, str]]:
        """Channel and thread to reply to, or None when the message has no platform route."""
        metadata = self.metadata or {}
        channel = metadata.get("channel")
        thread_ts = metadata.get("thread_ts")
        if channel and thread_ts:
            return {"channel": channel, "thread_ts": thread_ts}
        return None
