"""UI messages exchanged with the browser and their projection to model messages.

A UI message carries everything the chat view needs to render a turn (ids,
part states, step markers). The hosted model only needs role and content, so
:func:`convert_to_model_messages` strips the UI metadata and rebuilds the
pydantic-ai message history.
"""

from __future__ import annotations

import base64
from collections.abc import Iterator, Sequence
from typing import Annotated, Any, Literal, Union
from urllib.parse import unquote_to_bytes
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel
from pydantic_ai.messages import (
    BinaryContent,
    DocumentUrl,
    ImageUrl,
    ModelMessage,
    ModelRequest,
    ModelRequestPart,
    ModelResponse,
    ModelResponsePart,
    RetryPromptPart,
    SystemPromptPart,
    TextPart,
    ThinkingPart,
    ToolCallPart,
    ToolReturnPart,
    UserContent,
    UserPromptPart,
)

Role = Literal["system", "user", "assistant"]
PartState = Literal["streaming", "done"]
ToolState = Literal["input-streaming", "input-available", "output-available", "output-error"]

STATIC_TOOL_PREFIX = "tool-"


class UIModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class TextUIPart(UIModel):
    type: Literal["text"] = "text"
    text: str
    state: PartState | None = None


class ReasoningUIPart(UIModel):
    type: Literal["reasoning"] = "reasoning"
    text: str
    state: PartState | None = None


class FileUIPart(UIModel):
    type: Literal["file"] = "file"
    media_type: str
    url: str
    filename: str | None = None


class StepStartUIPart(UIModel):
    type: Literal["step-start"] = "step-start"


class ToolUIPart(UIModel):
    """Invocation of a statically declared tool, typed ``tool-<name>``."""

    type: str = Field(pattern=r"^tool-.+")
    tool_call_id: str
    state: ToolState
    input: Any = None
    output: Any = None
    error_text: str | None = None

    @property
    def tool_name(self) -> str:
        return self.type[len(STATIC_TOOL_PREFIX) :]

    @classmethod
    def for_tool(cls, tool_name: str, **kwargs: Any) -> ToolUIPart:
        return cls(type=f"{STATIC_TOOL_PREFIX}{tool_name}", **kwargs)


class DynamicToolUIPart(UIModel):
    """Invocation of a tool whose input shape is unknown until runtime."""

    type: Literal["dynamic-tool"] = "dynamic-tool"
    tool_name: str
    tool_call_id: str
    state: ToolState
    input: Any = None
    output: Any = None
    error_text: str | None = None


def _part_tag(value: Any) -> str | None:
    part_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if isinstance(part_type, str) and part_type.startswith(STATIC_TOOL_PREFIX):
        return "tool"
    return part_type


UIMessagePart = Annotated[
    Union[
        Annotated[TextUIPart, Tag("text")],
        Annotated[ReasoningUIPart, Tag("reasoning")],
        Annotated[FileUIPart, Tag("file")],
        Annotated[StepStartUIPart, Tag("step-start")],
        Annotated[ToolUIPart, Tag("tool")],
        Annotated[DynamicToolUIPart, Tag("dynamic-tool")],
    ],
    Discriminator(_part_tag),
]


class UIMessage(UIModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    role: Role
    parts: list[UIMessagePart]
    metadata: Any = None

    @property
    def text(self) -> str:
        """Text parts concatenated in order, as displayed in the chat view."""
        return "".join(part.text for part in self.parts if isinstance(part, TextUIPart))


def convert_to_model_messages(messages: Sequence[UIMessage]) -> list[ModelMessage]:
    model_messages: list[ModelMessage] = []
    for message in messages:
        if message.role == "system":
            if message.text:
                model_messages.append(ModelRequest(parts=[SystemPromptPart(content=message.text)]))
        elif message.role == "user":
            user_parts: list[ModelRequestPart] = [
                _user_prompt_part(part) for part in message.parts if isinstance(part, (TextUIPart, FileUIPart))
            ]
            if user_parts:
                model_messages.append(ModelRequest(parts=user_parts))
        else:
            model_messages.extend(_assistant_messages(message))
    return model_messages


def _user_prompt_part(part: TextUIPart | FileUIPart) -> UserPromptPart:
    if isinstance(part, TextUIPart):
        return UserPromptPart(content=part.text)
    return UserPromptPart(content=[_file_content(part)])


def _file_content(part: FileUIPart) -> UserContent:
    if part.url.startswith("data:"):
        header, _, payload = part.url.partition(",")
        data = base64.b64decode(payload) if header.endswith(";base64") else unquote_to_bytes(payload)
        return BinaryContent(data=data, media_type=part.media_type)
    if part.media_type.startswith("image/"):
        return ImageUrl(url=part.url)
    return DocumentUrl(url=part.url)


def _split_steps(parts: Sequence[UIMessagePart]) -> list[list[UIMessagePart]]:
    steps: list[list[UIMessagePart]] = [[]]
    for part in parts:
        if isinstance(part, StepStartUIPart):
            if steps[-1]:
                steps.append([])
            continue
        steps[-1].append(part)
    return [step for step in steps if step]


def _tool_args(value: Any) -> str | dict[str, Any] | None:
    if isinstance(value, (str, dict)):
        return value
    return None


def _assistant_messages(message: UIMessage) -> Iterator[ModelMessage]:
    for step in _split_steps(message.parts):
        response_parts: list[ModelResponsePart] = []
        return_parts: list[ModelRequestPart] = []
        for part in step:
            if isinstance(part, TextUIPart):
                if part.text:
                    response_parts.append(TextPart(content=part.text))
            elif isinstance(part, ReasoningUIPart):
                response_parts.append(ThinkingPart(content=part.text))
            elif isinstance(part, (ToolUIPart, DynamicToolUIPart)):
                # Calls that never produced a result can not be replayed to the model
                if part.state == "output-available":
                    return_parts.append(
                        ToolReturnPart(tool_name=part.tool_name, content=part.output, tool_call_id=part.tool_call_id)
                    )
                elif part.state == "output-error":
                    return_parts.append(
                        RetryPromptPart(
                            content=part.error_text or "Tool execution failed",
                            tool_name=part.tool_name,
                            tool_call_id=part.tool_call_id,
                        )
                    )
                else:
                    continue
                response_parts.append(
                    ToolCallPart(tool_name=part.tool_name, args=_tool_args(part.input), tool_call_id=part.tool_call_id)
                )

        if response_parts:
            yield ModelResponse(parts=response_parts)
        if return_parts:
            yield ModelRequest(parts=return_parts)
