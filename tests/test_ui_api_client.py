"""Tests for the chatrelay UI API client."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from httpx_sse import ServerSentEvent

from chatrelay.messages import TextUIPart, UIMessage
from chatrelay.ui.api_client import ChatRelayAPIClient


class MockSSEGenerator:
    """Mock SSE generator for testing."""

    def __init__(self, events: list[dict[str, str]]):
        """Initialize the mock SSE generator.

        Args:
            events: List of events to yield.
        """
        self.events = events
        self.index = 0

    def __aiter__(self):
        """Return self as an async iterator."""
        return self

    async def __anext__(self):
        """Return the next event."""
        if self.index >= len(self.events):
            raise StopAsyncIteration
        event = self.events[self.index]
        self.index += 1
        return ServerSentEvent(
            event=event.get("event", ""),
            data=event.get("data", ""),
            id=event.get("id", ""),
            retry=event.get("retry", None),
        )


class MockEventSource:
    """Mock event source for testing."""

    def __init__(self, events: list[dict[str, str]], response: MagicMock | None = None):
        """Initialize the mock event source.

        Args:
            events: List of events to yield.
            response: The HTTP response the events are read from.
        """
        self.events = events
        self.response = response or MagicMock()

    def aiter_sse(self):
        """Return an async iterator for SSE events."""
        return MockSSEGenerator(self.events)

    async def __aenter__(self):
        """Enter the context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit the context manager."""
        pass


@pytest.fixture
def mock_httpx_client():
    """Mock the httpx client."""
    with patch("httpx.AsyncClient") as mock_client:
        yield mock_client


@pytest.mark.asyncio
async def test_test_connection(mock_httpx_client):
    """Test checking the backend health endpoint."""
    # Setup
    mock_response = MagicMock()
    mock_response.json.return_value = {"message": "Hello World"}
    mock_response.raise_for_status = MagicMock()

    mock_client_instance = AsyncMock()
    mock_client_instance.get.return_value = mock_response
    mock_httpx_client.return_value = mock_client_instance

    # Execute
    client = ChatRelayAPIClient("http://localhost:9772/")
    data = await client.test_connection()

    # Assert
    assert data == {"message": "Hello World"}
    mock_client_instance.get.assert_called_once_with("http://localhost:9772/")
    mock_response.raise_for_status.assert_called_once()


@pytest.mark.asyncio
async def test_get_models(mock_httpx_client):
    """Test getting the known models."""
    mock_response = MagicMock()
    mock_response.json.return_value = {"providers": ["openai"], "models": {"openai": ["gpt-4o"]}}

    mock_client_instance = AsyncMock()
    mock_client_instance.get.return_value = mock_response
    mock_httpx_client.return_value = mock_client_instance

    client = ChatRelayAPIClient("http://localhost:9772")
    models = await client.get_models()

    assert models["models"]["openai"] == ["gpt-4o"]
    mock_client_instance.get.assert_called_once_with("http://localhost:9772/api/config/models")


@pytest.mark.asyncio
async def test_chat_stream(mock_httpx_client):
    """Test streaming chat responses."""
    # Setup
    mock_events = [
        {"data": json.dumps({"type": "start", "messageId": "msg-1"})},
        {"data": json.dumps({"type": "text-delta", "id": "text-0", "delta": "Hello"})},
        {"data": ""},
        {"data": json.dumps({"type": "text-delta", "id": "text-0", "delta": " world"})},
        {"data": "[DONE]"},
        {"data": json.dumps({"type": "text-delta", "id": "text-0", "delta": "after done"})},
    ]

    # Create a mock client instance
    mock_client_instance = AsyncMock()
    mock_httpx_client.return_value = mock_client_instance

    # Mock the aconnect_sse function
    with patch("chatrelay.ui.api_client.aconnect_sse") as mock_aconnect_sse:
        mock_event_source = MockEventSource(mock_events)
        mock_aconnect_sse.return_value = mock_event_source

        # Execute
        client = ChatRelayAPIClient("http://localhost:9772")
        message = UIMessage(id="m1", role="user", parts=[TextUIPart(text="Hello")])
        events = [event async for event in client.chat_stream([message])]

        # Assert
        assert events == [
            {"type": "start", "messageId": "msg-1"},
            {"type": "text-delta", "id": "text-0", "delta": "Hello"},
            {"type": "text-delta", "id": "text-0", "delta": " world"},
        ]
        mock_event_source.response.raise_for_status.assert_called_once()
        mock_aconnect_sse.assert_called_once_with(
            mock_client_instance,
            "POST",
            "http://localhost:9772/api/chat",
            json={"messages": [{"id": "m1", "role": "user", "parts": [{"type": "text", "text": "Hello"}]}]},
        )


@pytest.mark.asyncio
async def test_chat_stream_raises_on_error_status(mock_httpx_client):
    """Test that a rejected request surfaces as an HTTP error."""
    mock_httpx_client.return_value = AsyncMock()
    response = MagicMock()
    response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "Client error '422 Unprocessable Entity'", request=MagicMock(), response=MagicMock()
    )

    with patch("chatrelay.ui.api_client.aconnect_sse") as mock_aconnect_sse:
        mock_aconnect_sse.return_value = MockEventSource([], response=response)

        client = ChatRelayAPIClient("http://localhost:9772")
        with pytest.raises(httpx.HTTPStatusError):
            async for _ in client.chat_stream([]):
                pass
