from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from functools import partial
from typing import TYPE_CHECKING

import httpx
from fastapi import Depends
from pydantic_ai.messages import ModelMessage
from pydantic_ai.models import Model

from chatrelay.chunks import UIMessageChunk
from chatrelay.config import Config, get_config
from chatrelay.exceptions import MalformedRequest, UpstreamProviderError
from chatrelay.llms.agent import ChatAgent, StepResult
from chatrelay.llms.models import get_default_model
from chatrelay.log import logger
from chatrelay.messages import convert_to_model_messages
from chatrelay.router.streamer import UIMessageStreamEncoder
from chatrelay.tools import get_tools

if TYPE_CHECKING:
    from chatrelay.router.api.params import ChatRequest

HttpClientFactory = Callable[[], httpx.AsyncClient]


def get_http_client_factory(config: Config = Depends(get_config)) -> HttpClientFactory:
    return partial(httpx.AsyncClient, timeout=config.tool_fetch_timeout, follow_redirects=True)


def get_chat_controller(
    config: Config = Depends(get_config),
    default_model: Model | None = Depends(get_default_model),
    http_client_factory: HttpClientFactory = Depends(get_http_client_factory),
) -> ChatController:
    return ChatController(config, default_model, http_client_factory)


def log_step(step: StepResult) -> None:
    for tool_call in step.tool_calls:
        logger.info(f"Step called {tool_call.tool_name} ({tool_call.tool_call_id})")
    for tool_result in step.tool_results:
        logger.debug(f"Step result for {tool_result.tool_call_id}: {tool_result.content!r:.200}")


class ChatController:
    def __init__(
        self,
        config: Config,
        default_model: Model | None,
        http_client_factory: HttpClientFactory,
    ) -> None:
        self.config = config
        self.default_model = default_model
        self.http_client_factory = http_client_factory

    @property
    def default_system_prompt(self) -> str:
        return self.config.default_system_prompt

    def get_model(self) -> Model:
        if not self.default_model:
            raise UpstreamProviderError(
                f"Can not initialize model {self.config.default_model_id}, check the provider settings and credentials"
            )
        return self.default_model

    def prepare(self, params: ChatRequest) -> list[ModelMessage]:
        if not params.messages:
            raise MalformedRequest("messages must not be empty")

        model_messages = convert_to_model_messages(params.messages)
        if not model_messages:
            raise MalformedRequest("messages contain no content for the model")
        return model_messages

    def chat(self, params: ChatRequest) -> AsyncIterator[UIMessageChunk]:
        """Validate the request and return the chunk stream of the reply.

        Everything that can fail before the first byte is sent happens here,
        so failures turn into plain HTTP errors instead of a broken stream.
        """
        model_messages = self.prepare(params)
        model = self.get_model()
        logger.info(f"Chat request with {len(params.messages)} messages for {self.config.default_model_id}")
        return self._chat_stream(model, model_messages)

    async def _chat_stream(self, model: Model, model_messages: list[ModelMessage]) -> AsyncIterator[UIMessageChunk]:
        async with self.http_client_factory() as http_client:
            agent = ChatAgent(
                model,
                system_prompt=self.default_system_prompt,
                tools=get_tools(self.config, http_client),
                on_step_finish=log_step,
            )
            encoder = UIMessageStreamEncoder(agent.tool_names)
            async for chunk in encoder.encode(agent.request_stream(model_messages)):
                yield chunk

            usage = agent.usage()
            if usage is not None:
                logger.info(f"Chat {encoder.message_id} finished, usage: {usage}")
