"""Chunks of the UI message stream.

Every server-sent event of ``POST /api/chat`` carries one chunk as JSON. The
stream is terminated by a ``[DONE]`` event.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

DONE_SENTINEL = "[DONE]"


class UIChunk(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class StartChunk(UIChunk):
    type: Literal["start"] = "start"
    message_id: str | None = None


class StartStepChunk(UIChunk):
    type: Literal["start-step"] = "start-step"


class TextStartChunk(UIChunk):
    type: Literal["text-start"] = "text-start"
    id: str


class TextDeltaChunk(UIChunk):
    type: Literal["text-delta"] = "text-delta"
    id: str
    delta: str


class TextEndChunk(UIChunk):
    type: Literal["text-end"] = "text-end"
    id: str


class ReasoningStartChunk(UIChunk):
    type: Literal["reasoning-start"] = "reasoning-start"
    id: str


class ReasoningDeltaChunk(UIChunk):
    type: Literal["reasoning-delta"] = "reasoning-delta"
    id: str
    delta: str


class ReasoningEndChunk(UIChunk):
    type: Literal["reasoning-end"] = "reasoning-end"
    id: str


class ToolInputStartChunk(UIChunk):
    type: Literal["tool-input-start"] = "tool-input-start"
    tool_call_id: str
    tool_name: str
    dynamic: bool | None = None


class ToolInputDeltaChunk(UIChunk):
    type: Literal["tool-input-delta"] = "tool-input-delta"
    tool_call_id: str
    input_text_delta: str


class ToolInputAvailableChunk(UIChunk):
    type: Literal["tool-input-available"] = "tool-input-available"
    tool_call_id: str
    tool_name: str
    input: Any = None
    dynamic: bool | None = None


class ToolOutputAvailableChunk(UIChunk):
    type: Literal["tool-output-available"] = "tool-output-available"
    tool_call_id: str
    output: Any = None
    dynamic: bool | None = None


class ToolOutputErrorChunk(UIChunk):
    type: Literal["tool-output-error"] = "tool-output-error"
    tool_call_id: str
    error_text: str
    dynamic: bool | None = None


class FinishStepChunk(UIChunk):
    type: Literal["finish-step"] = "finish-step"


class FinishChunk(UIChunk):
    type: Literal["finish"] = "finish"


class ErrorChunk(UIChunk):
    type: Literal["error"] = "error"
    error_text: str


UIMessageChunk = Annotated[
    Union[
        StartChunk,
        StartStepChunk,
        TextStartChunk,
        TextDeltaChunk,
        TextEndChunk,
        ReasoningStartChunk,
        ReasoningDeltaChunk,
        ReasoningEndChunk,
        ToolInputStartChunk,
        ToolInputDeltaChunk,
        ToolInputAvailableChunk,
        ToolOutputAvailableChunk,
        ToolOutputErrorChunk,
        FinishStepChunk,
        FinishChunk,
        ErrorChunk,
    ],
    Field(discriminator="type"),
]

ui_message_chunk_adapter: TypeAdapter[UIMessageChunk] = TypeAdapter(UIMessageChunk)


def dump_chunk(chunk: UIChunk) -> str:
    return chunk.model_dump_json(by_alias=True, exclude_none=True)
