"""节假日查询工具。"""

from __future__ import annotations

import logging
from datetime import datetime, time, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from chat_core.domain.context import RequestContext
from chat_core.domain.exceptions import BusinessError, OperationCancelled
from chat_core.infrastructure.apis.holidays import HolidayCalendarClient
from chat_core.tools.base import Tool, parse_arguments
from chat_core.tools.definitions import ToolParam

logger = logging.getLogger(__name__)


class HolidaysArgs(BaseModel):
    before_date: Optional[datetime] = None
    after_date: Optional[datetime] = None
    max_count: int = Field(default=0, ge=0)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class HolidaysTool(Tool):
    name = "get_holidays"
    description = (
        "Gets local bank and public holidays. Each line is a single holiday "
        "in the format 'YYYY-MM-DD: Holiday Name'."
    )

    def __init__(self, client: Optional[HolidayCalendarClient] = None):
        self._client = client or HolidayCalendarClient()

    def params(self) -> Dict[str, ToolParam]:
        return {
            "before_date": ToolParam(
                name="before_date",
                description=(
                    "Optional date in RFC3339 format to get holidays before this date. "
                    "If not provided, all holidays will be returned."
                ),
                required=False,
                schema={"type": "string"},
            ),
            "after_date": ToolParam(
                name="after_date",
                description=(
                    "Optional date in RFC3339 format to get holidays after this date. "
                    "If not provided, all holidays will be returned."
                ),
                required=False,
                schema={"type": "string"},
            ),
            "max_count": ToolParam(
                name="max_count",
                description=(
                    "Optional maximum number of holidays to return. "
                    "If not provided, all holidays will be returned."
                ),
                required=False,
                schema={"type": "integer", "minimum": 1},
            ),
        }

    def execute(self, arguments: str, ctx: Optional[RequestContext] = None) -> str:
        args = parse_arguments(arguments, HolidaysArgs)
        if isinstance(args, str):
            return args

        try:
            events = self._client.load(ctx)
        except OperationCancelled:
            raise
        except BusinessError as e:
            logger.error("Failed to load holiday events", extra={"extra": {"error": e.message}})
            return "failed to load holiday events"

        before = _as_utc(args.before_date) if args.before_date else None
        after = _as_utc(args.after_date) if args.after_date else None

        lines: List[str] = []
        for event in events:
            if args.max_count and len(lines) >= args.max_count:
                break
            start = datetime.combine(event.day, time.min, tzinfo=timezone.utc)
            if before is not None and start > before:
                continue
            if after is not None and start < after:
                continue
            lines.append(f"{event.day.isoformat()}: {event.name}")

        if not lines:
            return "no holidays found for the given filters"
        return "\n".join(lines)
