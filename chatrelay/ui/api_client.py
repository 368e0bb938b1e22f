"""API client for the chatrelay UI."""

import json
from typing import Any, AsyncGenerator, Dict, List

import httpx
from httpx_sse import aconnect_sse

from chatrelay.chunks import DONE_SENTINEL
from chatrelay.log import logger
from chatrelay.messages import UIMessage

DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=5.0)


class ChatRelayAPIClient:
    """API client for the chatrelay backend."""

    def __init__(self, base_url: str, timeout: httpx.Timeout = DEFAULT_TIMEOUT):
        """Initialize the API client.

        Args:
            base_url: The base URL of the API.
            timeout: Timeout applied to every request, the read timeout bounds the gap between chunks.
        """
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout)
        logger.info(f"Initialized API client with base URL: {self.base_url}")

    async def test_connection(self) -> Dict[str, Any]:
        """Test the connection to the backend.

        Returns:
            The response of the health endpoint.
        """
        url = f"{self.base_url}/"
        logger.info(f"Making GET request to: {url}")
        response = await self.client.get(url)
        response.raise_for_status()
        data = response.json()
        logger.info("Test connection successful!")
        return data

    async def get_models(self) -> Dict[str, Any]:
        """Get the supported providers and known models."""
        url = f"{self.base_url}/api/config/models"
        logger.info(f"Making GET request to: {url}")
        response = await self.client.get(url)
        response.raise_for_status()
        return response.json()

    async def chat_stream(self, messages: List[UIMessage]) -> AsyncGenerator[Dict[str, Any], None]:
        """Stream the assistant reply to a conversation.

        Args:
            messages: The full conversation history, oldest first.

        Yields:
            Decoded UI message chunks, in the order the server sent them.
        """
        url = f"{self.base_url}/api/chat"
        payload = {"messages": [message.model_dump(mode="json", by_alias=True, exclude_none=True) for message in messages]}

        logger.info(f"Making POST request to: {url} with {len(messages)} messages")
        async with aconnect_sse(self.client, "POST", url, json=payload) as event_source:
            event_source.response.raise_for_status()
            logger.info("Connected to chat stream")
            async for sse in event_source.aiter_sse():
                if not sse.data:
                    continue
                if sse.data == DONE_SENTINEL:
                    break
                yield json.loads(sse.data)

    async def close(self) -> None:
        """Close the client."""
        logger.info("Closing API client")
        await self.client.aclose()
