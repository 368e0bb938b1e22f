from __future__ import annotations

from typing import Any

import httpx
from pydantic_ai import Tool

from chatrelay.exceptions import ToolExecutionError
from chatrelay.log import logger

SCHEDULE_TOOL_NAME = "getSchedule"
SCHEDULE_TOOL_DESCRIPTION = (
    "Get the event schedule as raw CSV data. "
    "Use this whenever the user asks about the schedule, timetable or upcoming events."
)


class ScheduleTool:
    """Fetches a fixed CSV schedule and hands it to the model verbatim."""

    def __init__(self, csv_url: str | None, client: httpx.AsyncClient) -> None:
        self.csv_url = csv_url
        self.client = client

    async def fetch_csv(self) -> str:
        if not self.csv_url:
            raise ToolExecutionError(SCHEDULE_TOOL_NAME, "no schedule CSV url is configured")
        try:
            response = await self.client.get(self.csv_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ToolExecutionError(SCHEDULE_TOOL_NAME, str(e)) from e
        return response.text

    async def get_schedule(self, location: str) -> dict[str, Any]:
        """Get the schedule.

        Args:
            location: Where the user wants the schedule for. Any value is accepted.
        """
        logger.info(f"Fetching schedule for {location!r} from {self.csv_url}")
        try:
            csv_data = await self.fetch_csv()
        except ToolExecutionError as e:
            logger.warning(str(e))
            return {"location": location, "error": e.message}

        logger.debug(f"Fetched {len(csv_data)} characters of schedule data")
        return {"location": location, "csvData": csv_data}

    def as_tool(self) -> Tool:
        return Tool(
            self.get_schedule,
            takes_ctx=False,
            name=SCHEDULE_TOOL_NAME,
            description=SCHEDULE_TOOL_DESCRIPTION,
        )
