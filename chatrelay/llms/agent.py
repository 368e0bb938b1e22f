from __future__ import annotations

import inspect
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Literal, Union

from pydantic_ai import Agent, Tool
from pydantic_ai.messages import (
    AgentStreamEvent,
    FunctionToolCallEvent,
    FunctionToolResultEvent,
    ModelMessage,
    ModelRequest,
    RetryPromptPart,
    ToolCallPart,
    ToolReturnPart,
    UserContent,
    UserPromptPart,
)
from pydantic_ai.models import Model
from pydantic_ai.usage import RunUsage

from chatrelay.log import logger


@dataclass
class StepStartEvent:
    """A model request is about to start streaming."""

    event_kind: Literal["step_start"] = "step_start"


@dataclass
class StepFinishEvent:
    """The model response and the tool calls it asked for are complete."""

    event_kind: Literal["step_finish"] = "step_finish"


@dataclass
class StepResult:
    tool_calls: list[ToolCallPart] = field(default_factory=list)
    tool_results: list[ToolReturnPart | RetryPromptPart] = field(default_factory=list)


ChatStreamEvent = Union[AgentStreamEvent, StepStartEvent, StepFinishEvent]
StepCallback = Callable[[StepResult], Union[Awaitable[None], None]]


def split_user_prompt(
    messages: Sequence[ModelMessage],
) -> tuple[str | Sequence[UserContent] | None, list[ModelMessage]]:
    """Pop the trailing user turn off the history so it can be sent as the run's prompt."""
    if not messages:
        return None, []

    last_message = messages[-1]
    if not isinstance(last_message, ModelRequest) or not all(
        isinstance(part, UserPromptPart) for part in last_message.parts
    ):
        return None, list(messages)

    contents: list[UserContent] = []
    for part in last_message.parts:
        if isinstance(part.content, str):
            contents.append(part.content)
        else:
            contents.extend(part.content)

    if len(contents) == 1 and isinstance(contents[0], str):
        return contents[0], list(messages[:-1])
    return contents, list(messages[:-1])


class ChatAgent:
    def __init__(
        self,
        model: Model,
        *,
        system_prompt: str,
        tools: Sequence[Tool] = (),
        on_step_finish: StepCallback | None = None,
    ):
        self.model = model
        self.tools = list(tools)
        self.on_step_finish = on_step_finish
        self.agent = Agent(model, instructions=system_prompt, tools=self.tools)

        self._all_messages: list[ModelMessage] = []
        self._usage: RunUsage | None = None

    @property
    def tool_names(self) -> set[str]:
        return {tool.name for tool in self.tools}

    async def _notify_step_finish(self, step: StepResult) -> None:
        if self.on_step_finish is None:
            return
        result = self.on_step_finish(step)
        if inspect.isawaitable(result):
            await result

    async def request_stream(self, messages: Sequence[ModelMessage]) -> AsyncIterator[ChatStreamEvent]:
        user_prompt, message_history = split_user_prompt(messages)

        async with self.agent.iter(user_prompt, message_history=message_history) as run:
            async for node in run:
                if Agent.is_model_request_node(node):
                    yield StepStartEvent()
                    async with node.stream(run.ctx) as request_stream:
                        async for event in request_stream:
                            yield event
                elif Agent.is_call_tools_node(node):
                    step = StepResult()
                    async with node.stream(run.ctx) as handle_stream:
                        async for event in handle_stream:
                            if isinstance(event, FunctionToolCallEvent):
                                logger.info(f"Calling tool {event.part.tool_name} with {event.part.args}")
                                step.tool_calls.append(event.part)
                            elif isinstance(event, FunctionToolResultEvent):
                                step.tool_results.append(event.result)
                            yield event
                    await self._notify_step_finish(step)
                    yield StepFinishEvent()

            if run.result is not None:
                self._all_messages = run.result.all_messages()
            self._usage = run.usage()

    def all_messages(self) -> list[ModelMessage]:
        return self._all_messages

    def usage(self) -> RunUsage | None:
        return self._usage
