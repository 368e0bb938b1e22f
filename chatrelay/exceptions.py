class ChatRelayError(Exception):
    """Base class for errors scoped to a single chat request."""


class MalformedRequest(ChatRelayError):
    """The request body is not a well-formed message list."""


class UpstreamProviderError(ChatRelayError):
    """The hosted model could not be reached or rejected the request."""


class ToolExecutionError(ChatRelayError):
    """A tool failed to produce its result."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"Error executing tool {tool_name}: {message}")
        self.tool_name = tool_name
        self.message = message
