from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Collection, Iterator
from typing import Any
from uuid import uuid4

from pydantic_ai.messages import (
    FunctionToolCallEvent,
    FunctionToolResultEvent,
    PartDeltaEvent,
    PartStartEvent,
    RetryPromptPart,
    TextPart,
    TextPartDelta,
    ThinkingPart,
    ThinkingPartDelta,
    ToolCallPart,
    ToolCallPartDelta,
)
from sse_starlette.sse import EventSourceResponse, ServerSentEvent

from chatrelay.chunks import (
    DONE_SENTINEL,
    ErrorChunk,
    FinishChunk,
    FinishStepChunk,
    ReasoningDeltaChunk,
    ReasoningEndChunk,
    ReasoningStartChunk,
    StartChunk,
    StartStepChunk,
    TextDeltaChunk,
    TextEndChunk,
    TextStartChunk,
    ToolInputAvailableChunk,
    ToolInputDeltaChunk,
    ToolInputStartChunk,
    ToolOutputAvailableChunk,
    ToolOutputErrorChunk,
    UIMessageChunk,
    dump_chunk,
)
from chatrelay.llms.agent import ChatStreamEvent, StepFinishEvent, StepStartEvent
from chatrelay.log import logger

UI_MESSAGE_STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
    "x-vercel-ai-ui-message-stream": "v1",
}


def _tool_input(part: ToolCallPart) -> Any:
    try:
        return part.args_as_dict()
    except ValueError:
        return part.args


class UIMessageStreamEncoder:
    """
    Translates the events of one generation session into UI message chunks.
    """

    def __init__(self, static_tool_names: Collection[str] = (), message_id: str | None = None):
        self.static_tool_names = set(static_tool_names)
        self.message_id = message_id or uuid4().hex

        self._part_counter = 0
        # part index within the current model response -> (chunk kind, part id)
        self._open_parts: dict[int, tuple[str, str]] = {}
        self._tool_call_ids: dict[int, str] = {}

    def _dynamic(self, tool_name: str) -> bool | None:
        return None if tool_name in self.static_tool_names else True

    def _new_part_id(self, kind: str) -> str:
        part_id = f"{kind}-{self._part_counter}"
        self._part_counter += 1
        return part_id

    def _close_open_parts(self) -> Iterator[UIMessageChunk]:
        for index in list(self._open_parts):
            yield from self._close_part(index)
        self._tool_call_ids = {}

    def _open_part(self, index: int, kind: str) -> Iterator[UIMessageChunk]:
        if index in self._open_parts:
            yield from self._close_part(index)
        part_id = self._new_part_id(kind)
        self._open_parts[index] = (kind, part_id)
        if kind == "text":
            yield TextStartChunk(id=part_id)
        else:
            yield ReasoningStartChunk(id=part_id)

    def _close_part(self, index: int) -> Iterator[UIMessageChunk]:
        kind, part_id = self._open_parts.pop(index)
        if kind == "text":
            yield TextEndChunk(id=part_id)
        else:
            yield ReasoningEndChunk(id=part_id)

    def _ensure_open_part(self, index: int, kind: str) -> Iterator[UIMessageChunk]:
        # Deltas may arrive for a part whose start event carried no content
        if index not in self._open_parts:
            yield from self._open_part(index, kind)

    def handle_event(self, event: ChatStreamEvent) -> Iterator[UIMessageChunk]:
        if isinstance(event, StepStartEvent):
            yield StartStepChunk()
        elif isinstance(event, StepFinishEvent):
            yield from self._close_open_parts()
            yield FinishStepChunk()
        elif isinstance(event, PartStartEvent):
            yield from self._handle_part_start(event)
        elif isinstance(event, PartDeltaEvent):
            yield from self._handle_part_delta(event)
        elif isinstance(event, FunctionToolCallEvent):
            yield from self._close_open_parts()
            part = event.part
            yield ToolInputAvailableChunk(
                tool_call_id=part.tool_call_id,
                tool_name=part.tool_name,
                input=_tool_input(part),
                dynamic=self._dynamic(part.tool_name),
            )
        elif isinstance(event, FunctionToolResultEvent):
            result = event.result
            if isinstance(result, RetryPromptPart):
                error_text = result.content if isinstance(result.content, str) else json.dumps(result.content)
                yield ToolOutputErrorChunk(
                    tool_call_id=result.tool_call_id,
                    error_text=error_text,
                    dynamic=self._dynamic(result.tool_name or ""),
                )
            else:
                yield ToolOutputAvailableChunk(
                    tool_call_id=result.tool_call_id,
                    output=result.content,
                    dynamic=self._dynamic(result.tool_name),
                )

    def _handle_part_start(self, event: PartStartEvent) -> Iterator[UIMessageChunk]:
        part = event.part
        if isinstance(part, TextPart):
            yield from self._open_part(event.index, "text")
            if part.content:
                yield TextDeltaChunk(id=self._open_parts[event.index][1], delta=part.content)
        elif isinstance(part, ThinkingPart):
            yield from self._open_part(event.index, "reasoning")
            if part.content:
                yield ReasoningDeltaChunk(id=self._open_parts[event.index][1], delta=part.content)
        elif isinstance(part, ToolCallPart):
            self._tool_call_ids[event.index] = part.tool_call_id
            yield ToolInputStartChunk(
                tool_call_id=part.tool_call_id,
                tool_name=part.tool_name,
                dynamic=self._dynamic(part.tool_name),
            )
            if part.args:
                yield ToolInputDeltaChunk(tool_call_id=part.tool_call_id, input_text_delta=part.args_as_json_str())

    def _handle_part_delta(self, event: PartDeltaEvent) -> Iterator[UIMessageChunk]:
        delta = event.delta
        if isinstance(delta, TextPartDelta):
            yield from self._ensure_open_part(event.index, "text")
            yield TextDeltaChunk(id=self._open_parts[event.index][1], delta=delta.content_delta)
        elif isinstance(delta, ThinkingPartDelta):
            if delta.content_delta:
                yield from self._ensure_open_part(event.index, "reasoning")
                yield ReasoningDeltaChunk(id=self._open_parts[event.index][1], delta=delta.content_delta)
        elif isinstance(delta, ToolCallPartDelta):
            tool_call_id = delta.tool_call_id or self._tool_call_ids.get(event.index)
            if tool_call_id is None or delta.args_delta is None:
                return
            args_delta = delta.args_delta if isinstance(delta.args_delta, str) else json.dumps(delta.args_delta)
            yield ToolInputDeltaChunk(tool_call_id=tool_call_id, input_text_delta=args_delta)

    async def encode(self, events: AsyncIterator[ChatStreamEvent]) -> AsyncIterator[UIMessageChunk]:
        yield StartChunk(message_id=self.message_id)
        try:
            async for event in events:
                for chunk in self.handle_event(event):
                    yield chunk
        except Exception as e:
            logger.exception(f"Error streaming message {self.message_id}: {e}")
            yield ErrorChunk(error_text=str(e) or type(e).__name__)
            return
        yield FinishChunk()


class UIMessageStreamResponse(EventSourceResponse):
    """
    An EventSourceResponse that sends UI message chunks and a final ``[DONE]`` event.
    """

    def __init__(
        self,
        chunks: AsyncIterator[UIMessageChunk],
        status_code: int = 200,
        headers: dict[str, str] | None = None,
        **kwargs,
    ):
        async def event_generator():
            try:
                async for chunk in chunks:
                    yield ServerSentEvent(data=dump_chunk(chunk))
                yield ServerSentEvent(data=DONE_SENTINEL)
            except asyncio.CancelledError:
                logger.info("Client disconnected, aborting chat stream")
                raise

        super().__init__(
            content=event_generator(),
            status_code=status_code,
            headers={**UI_MESSAGE_STREAM_HEADERS, **(headers or {})},
            **kwargs,
        )
