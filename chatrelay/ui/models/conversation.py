"""Conversation models for the chatrelay UI."""

from enum import Enum

from pydantic import BaseModel, Field

from chatrelay.messages import UIMessage


class RequestStatus(str, Enum):
    """Status of the chat request, drives input locking and the typing indicator."""

    IDLE = "idle"
    STREAMING = "streaming"
    ERROR = "error"


class ConversationState(BaseModel):
    """Conversation state model."""

    messages: list[UIMessage] = Field(default_factory=list)
    status: RequestStatus = RequestStatus.IDLE
    input: str = ""
    error: str | None = None
