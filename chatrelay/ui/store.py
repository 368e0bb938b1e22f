"""Client side conversation state for the chatrelay UI."""

from typing import Any, AsyncIterator, Dict, List, Protocol

from chatrelay.log import logger
from chatrelay.messages import TextUIPart, UIMessage
from chatrelay.ui.message_processor import MessageProcessor
from chatrelay.ui.models import ConversationState, RequestStatus

TYPING_INDICATOR = "…"


class ChatStreamClient(Protocol):
    def chat_stream(self, messages: List[UIMessage]) -> AsyncIterator[Dict[str, Any]]: ...


class ConversationStore:
    """Holds one conversation and drives its send/receive cycle.

    At most one request is in flight per store: ``submit`` is ignored while a
    reply is streaming.
    """

    def __init__(self, client: ChatStreamClient, state: ConversationState | None = None):
        self.client = client
        self.state = state or ConversationState()

    @property
    def messages(self) -> List[UIMessage]:
        return self.state.messages

    @property
    def status(self) -> RequestStatus:
        return self.state.status

    async def submit(self, text: str | None = None) -> AsyncIterator[ConversationState]:
        """Send a user message and stream the reply into the conversation.

        Args:
            text: The message to send, defaults to the current input buffer.

        Yields:
            The conversation state after every visible change.
        """
        text = self.state.input if text is None else text
        if not text.strip() or self.state.status == RequestStatus.STREAMING:
            return

        self.state.messages.append(UIMessage(role="user", parts=[TextUIPart(text=text)]))
        self.state.input = ""
        self.state.status = RequestStatus.STREAMING
        self.state.error = None

        assistant_message = UIMessage(role="assistant", parts=[])
        processor = MessageProcessor(assistant_message)
        try:
            yield self.state

            # Replies that failed before producing any part are not sent back
            history = [message for message in self.state.messages if message.parts]
            self.state.messages.append(assistant_message)

            try:
                async for event in self.client.chat_stream(history):
                    if processor.process_event(event):
                        yield self.state
            except Exception as e:
                logger.exception(f"Chat stream failed: {e}")
                self._finish(assistant_message, RequestStatus.ERROR, str(e) or type(e).__name__)
                yield self.state
                return

            if processor.error_text is not None:
                self._finish(assistant_message, RequestStatus.ERROR, processor.error_text)
            else:
                self._finish(assistant_message, RequestStatus.IDLE)
            yield self.state
        finally:
            # Closed or cancelled by the consumer mid-stream, the next submit must not be blocked
            if self.state.status == RequestStatus.STREAMING:
                logger.warning("Chat stream was interrupted")
                self._finish(assistant_message, RequestStatus.ERROR, "Request was interrupted")

    def _finish(self, assistant_message: UIMessage, status: RequestStatus, error: str | None = None) -> None:
        # Partial text is kept, only a reply without any part is dropped
        if not assistant_message.parts:
            self.state.messages = [message for message in self.state.messages if message is not assistant_message]
        self.state.status = status
        self.state.error = error


def render_messages(messages: List[UIMessage], status: RequestStatus) -> List[Dict[str, str]]:
    """Render the conversation as chat bubbles.

    Args:
        messages: The conversation messages.
        status: The current request status.

    Returns:
        Messages in the ``{"role", "content"}`` format of a Gradio chatbot.
    """
    rendered = []
    for message in messages:
        if message.role == "system":
            continue
        text = message.text
        if not text:
            continue
        rendered.append({"role": message.role, "content": text})

    if status == RequestStatus.STREAMING and (not rendered or rendered[-1]["role"] != "assistant"):
        rendered.append({"role": "assistant", "content": TYPING_INDICATOR})
    return rendered
