from __future__ import annotations

import json
import os

os.environ["LOGURU_LEVEL"] = "DEBUG"

from collections.abc import AsyncIterator
from functools import partial
from typing import Any

import httpx
import pytest
import sse_starlette.sse
from fastapi.testclient import TestClient
from pydantic_ai import models
from pydantic_ai.messages import ModelMessage, ModelRequest, ToolReturnPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, DeltaToolCall, DeltaToolCalls, FunctionModel

from chatrelay.app import app as APP
from chatrelay.llms.models import get_default_model
from chatrelay.router.controller.chat import get_http_client_factory

models.ALLOW_MODEL_REQUESTS = False

CSV_URL = "https://schedule.example.com/events.csv"
CSV_DATA = "day,time,event\nMonday,09:00,Standup\nTuesday,14:00,Review\n"


def user_message(text: str, message_id: str = "msg-user") -> dict[str, Any]:
    return {"id": message_id, "role": "user", "parts": [{"type": "text", "text": text}]}


def parse_ui_stream(body: str) -> list[Any]:
    """Decode the data lines of a UI message stream, keeping the [DONE] marker as a string."""
    events = []
    for line in body.splitlines():
        if not line.startswith("data:"):
            continue
        data = line[len("data:") :].strip()
        events.append(data if data == "[DONE]" else json.loads(data))
    return events


def _last_user_text(messages: list[ModelMessage]) -> str:
    for message in reversed(messages):
        if isinstance(message, ModelRequest):
            for part in message.parts:
                if isinstance(part, UserPromptPart) and isinstance(part.content, str):
                    return part.content
    return ""


async def schedule_stream_function(messages: list[ModelMessage], info: AgentInfo) -> AsyncIterator[str | DeltaToolCalls]:
    """Calls the schedule tool when asked about the schedule, then answers from its result."""
    last_message = messages[-1]
    tool_returns = (
        [part for part in last_message.parts if isinstance(part, ToolReturnPart)]
        if isinstance(last_message, ModelRequest)
        else []
    )
    if tool_returns:
        content = tool_returns[0].content
        if "csvData" in content:
            yield "First up: "
            yield content["csvData"].splitlines()[1]
        else:
            yield "Sorry, I could not load the schedule: "
            yield content["error"]
        return

    has_schedule_tool = any(tool.name == "getSchedule" for tool in info.function_tools)
    if has_schedule_tool and "schedule" in _last_user_text(messages).lower():
        yield {0: DeltaToolCall(name="getSchedule", json_args='{"location": "anything"}', tool_call_id="call_1")}
        return

    yield "Hello"
    yield " there!"


def csv_handler(request: httpx.Request) -> httpx.Response:
    if str(request.url) == CSV_URL:
        return httpx.Response(200, text=CSV_DATA, headers={"content-type": "text/csv"})
    return httpx.Response(404, text="not found")


@pytest.fixture(autouse=True)
def reset_sse_starlette_appstatus_event():
    # The exit event is bound to the loop of the first TestClient otherwise
    if hasattr(sse_starlette.sse, "AppStatus"):
        sse_starlette.sse.AppStatus.should_exit_event = None


@pytest.fixture(autouse=True)
def chatrelay_env(monkeypatch):
    monkeypatch.setenv("CHATRELAY_SCHEDULE_CSV_URL", CSV_URL)
    monkeypatch.setenv("CHATRELAY_DEFAULT_MODEL_PROVIDER", "openai")
    monkeypatch.setenv("CHATRELAY_DEFAULT_MODEL_NAME", "gpt-4o")


@pytest.fixture
def chat_model() -> FunctionModel:
    return FunctionModel(stream_function=schedule_stream_function)


@pytest.fixture
def csv_transport() -> httpx.MockTransport:
    return httpx.MockTransport(csv_handler)


@pytest.fixture
def app(chat_model, csv_transport):
    # Dependencies injection mock
    APP.dependency_overrides = {
        get_default_model: lambda: chat_model,
        get_http_client_factory: lambda: partial(httpx.AsyncClient, transport=csv_transport),
    }
    yield APP
    APP.dependency_overrides = {}


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
