"""Chat interface component for the chatrelay UI."""

from collections.abc import AsyncIterable
from typing import Any, Dict, List, Optional, Tuple

import gradio as gr

from chatrelay.log import logger
from chatrelay.ui.api_client import ChatRelayAPIClient
from chatrelay.ui.models import ConversationState, RequestStatus
from chatrelay.ui.store import ConversationStore, render_messages


def _input_update(state: ConversationState) -> Dict[str, Any]:
    return gr.update(value=state.input, interactive=state.status != RequestStatus.STREAMING)


async def send_message(
    message: str,
    store: Optional[ConversationStore],
    url: str,
) -> AsyncIterable[Tuple[List[Dict[str, str]], Dict[str, Any], ConversationStore]]:
    """Send a message to the backend and stream the reply.

    Args:
        message: The message to send.
        store: The conversation store of this browser session, created on first use.
        url: The URL of the backend.

    Yields:
        A tuple of (chat_history, input_update, store).
    """
    client = ChatRelayAPIClient(url)
    if store is None:
        store = ConversationStore(client)
    else:
        store.client = client

    try:
        async for state in store.submit(message):
            yield render_messages(state.messages, state.status), _input_update(state), store
    finally:
        await client.close()

    if store.status == RequestStatus.ERROR:
        logger.error(f"Chat request failed: {store.state.error}")
        gr.Warning(f"Failed to get a reply: {store.state.error}")
        yield render_messages(store.messages, store.status), _input_update(store.state), store


def create_chat_interface() -> Tuple[gr.Chatbot, gr.Textbox, gr.Button]:
    """Create the chat interface component.

    Returns:
        A tuple of (chatbot, message_input, submit_button).
    """
    chatbot = gr.Chatbot(
        height=500,
        render_markdown=True,
        type="messages",
    )

    with gr.Row():
        with gr.Column(scale=8):
            msg = gr.Textbox(
                placeholder="Type your message...",
                show_label=False,
                container=False,
                scale=8,
            )
        with gr.Column(scale=1):
            submit_btn = gr.Button("Send", variant="primary")

    return chatbot, msg, submit_btn
