"""日期与时间工具。"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel

from chat_core.domain.context import RequestContext
from chat_core.tools.base import Tool, parse_arguments
from chat_core.tools.definitions import ToolParam

Clock = Callable[[], datetime]


def _local_now() -> datetime:
    return datetime.now().astimezone()


def rfc3339(value: datetime) -> str:
    return value.replace(microsecond=0).isoformat()


class TodayDateTool(Tool):
    name = "get_today_date"
    description = "Get today's date and time in RFC3339 format"

    def __init__(self, clock: Clock = _local_now):
        self._clock = clock

    def execute(self, arguments: str, ctx: Optional[RequestContext] = None) -> str:
        return rfc3339(self._clock())


class TimezoneArgs(BaseModel):
    timezone: str


class TimeInZoneTool(Tool):
    name = "get_time_in_zone"
    description = (
        "Get current time in a specific IANA time zone "
        "(e.g., 'America/New_York', 'Europe/London', 'Asia/Tokyo')"
    )

    def __init__(self, clock: Clock = _local_now):
        self._clock = clock

    def params(self) -> Dict[str, ToolParam]:
        return {
            "timezone": ToolParam(
                name="timezone",
                description="IANA time zone name (e.g. America/New_York)",
                required=True,
                schema={"type": "string"},
            ),
        }

    def execute(self, arguments: str, ctx: Optional[RequestContext] = None) -> str:
        args = parse_arguments(arguments, TimezoneArgs, "failed to parse timezone parameter")
        if isinstance(args, str):
            return args
        try:
            zone = ZoneInfo(args.timezone)
        except (ZoneInfoNotFoundError, ValueError, OSError) as e:
            return f"invalid timezone '{args.timezone}': {e}"
        return rfc3339(self._clock().astimezone(zone))
