"""Message processor for the chatrelay UI."""

from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from chatrelay.chunks import (
    ErrorChunk,
    FinishChunk,
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
    ui_message_chunk_adapter,
)
from chatrelay.log import logger
from chatrelay.messages import (
    DynamicToolUIPart,
    ReasoningUIPart,
    StepStartUIPart,
    TextUIPart,
    ToolUIPart,
    UIMessage,
)

ToolPart = Union[ToolUIPart, DynamicToolUIPart]


class MessageProcessor:
    """Applies streamed chunks, in arrival order, to the assistant message being built."""

    def __init__(self, message: UIMessage):
        """Initialize the message processor.

        Args:
            message: The assistant message that receives the streamed parts.
        """
        self.message = message
        self.text_parts: Dict[str, Union[TextUIPart, ReasoningUIPart]] = {}
        self.tool_parts: Dict[str, ToolPart] = {}
        self.tool_inputs: Dict[str, str] = {}
        self.error_text: Optional[str] = None
        self.finished = False

    def process_event(self, event: Dict[str, Any]) -> bool:
        """Process a decoded stream event.

        Args:
            event: The JSON payload of one server-sent event.

        Returns:
            Whether the event was a known chunk and has been applied.
        """
        try:
            chunk = ui_message_chunk_adapter.validate_python(event)
        except ValidationError:
            logger.debug(f"Ignoring unknown chunk: {event}")
            return False

        self.process_chunk(chunk)
        return True

    def process_chunk(self, chunk: UIMessageChunk) -> None:
        if isinstance(chunk, StartChunk):
            if chunk.message_id:
                self.message.id = chunk.message_id
        elif isinstance(chunk, StartStepChunk):
            self.message.parts.append(StepStartUIPart())
        elif isinstance(chunk, (TextStartChunk, ReasoningStartChunk)):
            self._start_text_part(chunk.id, reasoning=isinstance(chunk, ReasoningStartChunk))
        elif isinstance(chunk, (TextDeltaChunk, ReasoningDeltaChunk)):
            part = self.text_parts.get(chunk.id) or self._start_text_part(
                chunk.id, reasoning=isinstance(chunk, ReasoningDeltaChunk)
            )
            part.text += chunk.delta
        elif isinstance(chunk, (TextEndChunk, ReasoningEndChunk)):
            if chunk.id in self.text_parts:
                self.text_parts[chunk.id].state = "done"
        elif isinstance(chunk, ToolInputStartChunk):
            self._tool_part(chunk.tool_call_id, chunk.tool_name, chunk.dynamic)
        elif isinstance(chunk, ToolInputDeltaChunk):
            self.tool_inputs[chunk.tool_call_id] = self.tool_inputs.get(chunk.tool_call_id, "") + chunk.input_text_delta
        elif isinstance(chunk, ToolInputAvailableChunk):
            part = self._tool_part(chunk.tool_call_id, chunk.tool_name, chunk.dynamic)
            part.input = chunk.input
            part.state = "input-available"
        elif isinstance(chunk, ToolOutputAvailableChunk):
            if chunk.tool_call_id in self.tool_parts:
                part = self.tool_parts[chunk.tool_call_id]
                part.output = chunk.output
                part.state = "output-available"
        elif isinstance(chunk, ToolOutputErrorChunk):
            if chunk.tool_call_id in self.tool_parts:
                part = self.tool_parts[chunk.tool_call_id]
                part.error_text = chunk.error_text
                part.state = "output-error"
        elif isinstance(chunk, ErrorChunk):
            self.error_text = chunk.error_text
        elif isinstance(chunk, FinishChunk):
            self.finished = True

    def _start_text_part(self, part_id: str, reasoning: bool = False) -> Union[TextUIPart, ReasoningUIPart]:
        part = ReasoningUIPart(text="", state="streaming") if reasoning else TextUIPart(text="", state="streaming")
        self.text_parts[part_id] = part
        self.message.parts.append(part)
        return part

    def _tool_part(self, tool_call_id: str, tool_name: str, dynamic: Optional[bool]) -> ToolPart:
        if tool_call_id in self.tool_parts:
            return self.tool_parts[tool_call_id]

        if dynamic:
            part: ToolPart = DynamicToolUIPart(tool_name=tool_name, tool_call_id=tool_call_id, state="input-streaming")
        else:
            part = ToolUIPart.for_tool(tool_name, tool_call_id=tool_call_id, state="input-streaming")
        self.tool_parts[tool_call_id] = part
        self.message.parts.append(part)
        return part
