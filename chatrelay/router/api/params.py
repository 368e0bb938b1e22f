from pydantic import BaseModel, field_validator

from chatrelay.messages import UIMessage


class GetModelsResponse(BaseModel):
    providers: list[str]
    models: dict[str, list[str]]


class ChatRequest(BaseModel):
    id: str | None = None
    messages: list[UIMessage]

    @field_validator("messages")
    @classmethod
    def check_parts(cls, messages: list[UIMessage]) -> list[UIMessage]:
        for message in messages:
            if not message.parts:
                raise ValueError(f"Message {message.id} has no parts")
        return messages
