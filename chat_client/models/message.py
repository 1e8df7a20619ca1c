"""
Message Models - Conversation messages and streaming frames.
"""

from typing import List, Literal
from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]


class Message(BaseModel):
    """A single chat message. The assistant placeholder grows in place while streaming."""
    role: Role
    content: str = ""


class ChatHistory(BaseModel):
    """History endpoint response."""
    messages: List[Message] = Field(default_factory=list)


class StreamFrame(BaseModel):
    """One decoded record of the chat stream: an incremental text delta."""
    content: str = ""
    done: bool = False
