"""模型可调用的工具集合。

default_registry 负责组装生产环境使用的全部工具，进程内构建一次后只读共享。
"""

from chat_core.config.settings import settings
from chat_core.infrastructure.apis.airport import AirportClient
from chat_core.infrastructure.apis.holidays import HolidayCalendarClient
from chat_core.infrastructure.apis.weather import WeatherClient
from chat_core.tools.airport import AirportTool
from chat_core.tools.date_time import TimeInZoneTool, TodayDateTool
from chat_core.tools.holidays import HolidaysTool
from chat_core.tools.registry import ToolRegistry
from chat_core.tools.weather import ForecastTool, WeatherTool


def default_registry(cfg=settings) -> ToolRegistry:
    weather = WeatherClient(cfg)
    return ToolRegistry(
        [
            WeatherTool(weather),
            ForecastTool(weather),
            TodayDateTool(),
            TimeInZoneTool(),
            AirportTool(AirportClient(cfg)),
            HolidaysTool(HolidayCalendarClient(cfg=cfg)),
        ]
    )
