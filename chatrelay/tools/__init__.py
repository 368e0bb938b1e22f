from __future__ import annotations

import httpx
from pydantic_ai import Tool

from chatrelay.config import Config
from chatrelay.tools.schedule import SCHEDULE_TOOL_NAME, ScheduleTool


def get_tools(config: Config, client: httpx.AsyncClient) -> list[Tool]:
    return [ScheduleTool(config.schedule_csv_url, client).as_tool()]


__all__ = ["SCHEDULE_TOOL_NAME", "ScheduleTool", "get_tools"]
