"""节假日 ICS 日历加载。"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

import httpx
from icalendar import Calendar

from chat_core.config.settings import settings
from chat_core.domain.context import RequestContext
from chat_core.domain.exceptions import ApiError, NetworkError

logger = logging.getLogger(__name__)


@dataclass
class Holiday:
    day: date
    name: str


def parse_calendar(raw: bytes) -> List[Holiday]:
    """解析 ICS 文本，按日历中的顺序返回全天事件。"""
    try:
        cal = Calendar.from_ical(raw)
    except ValueError as e:
        raise ApiError(code="API_ERROR", message=f"failed to parse calendar: {e}")
    holidays: List[Holiday] = []
    for event in cal.walk("VEVENT"):
        start = event.get("DTSTART")
        if start is None:
            continue
        value = start.dt
        if isinstance(value, datetime):
            value = value.date()
        holidays.append(Holiday(day=value, name=str(event.get("SUMMARY", ""))))
    return holidays


class HolidayCalendarClient:
    def __init__(self, link: Optional[str] = None, cfg=settings):
        self._settings = cfg
        self._link = link or cfg.holiday_calendar_link

    def load(self, ctx: Optional[RequestContext] = None) -> List[Holiday]:
        logger.info("Loading calendar", extra={"extra": {"link": self._link}})
        timeout = self._settings.http_timeout
        if ctx is not None:
            ctx.check()
            timeout = ctx.timeout(timeout)
        try:
            with httpx.Client(timeout=timeout, follow_redirects=True) as client:
                resp = client.get(self._link)
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=f"failed to fetch calendar: {e}")
        if resp.status_code != 200:
            raise ApiError(
                code="API_ERROR",
                message=f"calendar download failed (status {resp.status_code})",
                http_status=resp.status_code,
            )
        return parse_calendar(resp.content)
