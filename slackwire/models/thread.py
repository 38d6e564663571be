"""Thread model: a durable, append-only conversation."""
import uuid
from datetime import datetime, UTC
from typing import List, Optional
from pydantic import BaseModel, Field
from slackwire.models.message import Message

class Thread(BaseModel):
    """A conversation addressed by a stable session key."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    key: str
    coordinates: List[str] = Field(default_factory=list)
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def add_message(self, message: Message) -> Message:
        """Append a message, assigning it the next sequence number."""
        message.sequence = len(self.messages) + 1
        self.messages.append(message)
        self.updated_at = datetime.now(UTC)
        return message

    def last_user_message(self) -> Optional[Message]:
        for message in reversed(self.messages):
            if message.role == "user":
                return message
        return None
