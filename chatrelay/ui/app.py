"""Gradio UI for chatrelay."""

import gradio as gr

from chatrelay.config import get_config
from chatrelay.ui.components.chat_interface import create_chat_interface, send_message


def create_ui(backend_url: str) -> gr.Blocks:
    """Create the UI.

    Args:
        backend_url: The URL of the chatrelay backend.

    Returns:
        A Gradio Blocks component for the UI.
    """
    with gr.Blocks(title="AI Chat") as app:
        gr.Markdown("# AI Chat\nStart a conversation by typing a message below")

        chatbot, msg, submit_btn = create_chat_interface()

        store = gr.State(None)
        url = gr.State(backend_url)

        for trigger in (submit_btn.click, msg.submit):
            trigger(
                fn=send_message,
                inputs=[msg, store, url],
                outputs=[chatbot, msg, store],
            )

    return app


def main():
    """Run the UI."""
    app = create_ui(get_config().backend_url)
    app.launch(inbrowser=True)


if __name__ == "__main__":
    main()
