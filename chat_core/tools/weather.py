"""天气相关工具：当前天气与天气预报。"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from chat_core.domain.context import RequestContext
from chat_core.domain.exceptions import BusinessError, OperationCancelled
from chat_core.infrastructure.apis.weather import WeatherClient
from chat_core.tools.base import Tool, parse_arguments
from chat_core.tools.definitions import ToolParam

logger = logging.getLogger(__name__)

DEFAULT_FORECAST_DAYS = 3


class WeatherArgs(BaseModel):
    location: str


class ForecastArgs(BaseModel):
    location: str
    days: int = Field(default=0, ge=0, le=14)
    hour: Optional[int] = Field(default=None, ge=0, le=23)
    date: Optional[str] = None


class WeatherTool(Tool):
    name = "get_weather"
    description = "Get weather at the given location"

    def __init__(self, client: Optional[WeatherClient] = None):
        self._client = client or WeatherClient()

    def params(self) -> Dict[str, ToolParam]:
        return {
            "location": ToolParam(
                name="location",
                description="City name or coordinates",
                required=True,
                schema={"type": "string"},
            ),
        }

    def execute(self, arguments: str, ctx: Optional[RequestContext] = None) -> str:
        args = parse_arguments(arguments, WeatherArgs, "failed to parse location parameter")
        if isinstance(args, str):
            return args

        try:
            data = self._client.current(args.location, ctx)
        except OperationCancelled:
            raise
        except BusinessError as e:
            logger.error("Failed to get weather", extra={"extra": {"location": args.location, "error": e.message}})
            return f"failed to get weather: {e.message}"

        current = data.current
        return (
            f"Weather in {data.location.name}, {data.location.country}: {current.condition.text}, "
            f"Temperature: {current.temp_c:.1f}°C, Feels like: {current.feelslike_c:.1f}°C, "
            f"Wind: {current.wind_kph:.1f} km/h {current.wind_dir}, Humidity: {current.humidity}%, "
            f"Cloud coverage: {current.cloud}%"
        )


class ForecastTool(Tool):
    name = "get_forecast"
    description = "Get weather forecast for a location"

    def __init__(self, client: Optional[WeatherClient] = None):
        self._client = client or WeatherClient()

    def params(self) -> Dict[str, ToolParam]:
        return {
            "location": ToolParam(
                name="location",
                description="City name or coordinates",
                required=True,
                schema={"type": "string"},
            ),
            "days": ToolParam(
                name="days",
                description="Number of days (1-14)",
                required=False,
                schema={"type": "integer", "minimum": 1, "maximum": 14},
            ),
            "hour": ToolParam(
                name="hour",
                description="Specific hour (0-23) to get forecast for",
                required=False,
                schema={"type": "integer", "minimum": 0, "maximum": 23},
            ),
            "date": ToolParam(
                name="date",
                description="Specific date in YYYY-MM-DD format. Must be within next 14 days.",
                required=False,
                schema={"type": "string"},
            ),
        }

    def execute(self, arguments: str, ctx: Optional[RequestContext] = None) -> str:
        args = parse_arguments(arguments, ForecastArgs, "failed to parse arguments")
        if isinstance(args, str):
            return args
        days = args.days or DEFAULT_FORECAST_DAYS

        if args.date:
            try:
                datetime.strptime(args.date, "%Y-%m-%d")
            except ValueError:
                return "invalid date format, use YYYY-MM-DD"

        try:
            forecast = self._client.forecast(args.location, days, args.hour, args.date, ctx)
        except OperationCancelled:
            raise
        except BusinessError as e:
            logger.error("Failed to get forecast", extra={"extra": {"location": args.location, "error": e.message}})
            return f"failed to get forecast: {e.message}"

        lines = [f"Forecast for {forecast.location.name}, {forecast.location.country}:"]
        for day in forecast.forecast.forecastday:
            # 指定 hour 时 API 只返回该小时的数据
            if args.hour is not None and day.hour:
                h = day.hour[0]
                clock = h.time.split(" ")[-1]
                lines.append(
                    f"- {day.date} {clock}: {h.condition.text}, Temp: {h.temp_c:.1f}°C, Rain: {h.chance_of_rain}%"
                )
            else:
                lines.append(
                    f"- {day.date}: {day.day.condition.text}, Max: {day.day.maxtemp_c:.1f}°C, "
                    f"Min: {day.day.mintemp_c:.1f}°C, Rain: {day.day.daily_chance_of_rain}%"
                )
        return "\n".join(lines) + "\n"
