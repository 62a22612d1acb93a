"""WeatherAPI (api.weatherapi.com) 客户端。

只负责 HTTP 调用与响应解析；格式化成给模型阅读的文本由工具层完成。
"""

from typing import List, Optional

import httpx
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from chat_core.config.settings import settings
from chat_core.domain.context import RequestContext
from chat_core.domain.exceptions import ApiError, NetworkError, ValidationError


class Condition(BaseModel):
    text: str = ""
    icon: str = ""
    code: int = 0


class Location(BaseModel):
    name: str = ""
    region: str = ""
    country: str = ""
    lat: float = 0.0
    lon: float = 0.0
    tz_id: str = ""
    localtime: str = ""


class Current(BaseModel):
    last_updated: str = ""
    temp_c: float = 0.0
    condition: Condition = Field(default_factory=Condition)
    wind_kph: float = 0.0
    wind_dir: str = ""
    humidity: int = 0
    cloud: int = 0
    feelslike_c: float = 0.0
    precip_mm: float = 0.0
    uv: float = 0.0


class WeatherResponse(BaseModel):
    location: Location
    current: Current


class Day(BaseModel):
    maxtemp_c: float = 0.0
    mintemp_c: float = 0.0
    avgtemp_c: float = 0.0
    daily_chance_of_rain: int = 0
    condition: Condition = Field(default_factory=Condition)


class Hour(BaseModel):
    time: str = ""
    temp_c: float = 0.0
    chance_of_rain: int = 0
    condition: Condition = Field(default_factory=Condition)


class ForecastDay(BaseModel):
    date: str
    day: Day = Field(default_factory=Day)
    hour: List[Hour] = Field(default_factory=list)


class Forecast(BaseModel):
    forecastday: List[ForecastDay] = Field(default_factory=list)


class ForecastResponse(BaseModel):
    location: Location
    forecast: Forecast = Field(default_factory=Forecast)


def _validate(model, data):
    """200 响应体结构不符合预期时转换为 ApiError。"""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ApiError(code="API_ERROR", message=f"failed to parse response: {e}")


class WeatherClient:
    """WeatherAPI 客户端。"""

    def __init__(self, cfg=settings):
        self._settings = cfg

    def current(self, location: str, ctx: Optional[RequestContext] = None) -> WeatherResponse:
        data = self._get("current.json", {"q": location, "lang": "en"}, ctx)
        return _validate(WeatherResponse, data)

    def forecast(
        self,
        location: str,
        days: int,
        hour: Optional[int] = None,
        date: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
    ) -> ForecastResponse:
        params = {"q": location, "days": str(days), "lang": "en"}
        if hour is not None:
            params["hour"] = str(hour)
        if date:
            params["dt"] = date
        data = self._get("forecast.json", params, ctx)
        return _validate(ForecastResponse, data)

    def _get(self, endpoint: str, params: dict, ctx: Optional[RequestContext]) -> dict:
        api_key = getattr(self._settings, "weather_api_key", None)
        if not api_key:
            raise ValidationError(code="MISSING_API_KEY", message="WEATHER_API_KEY environment variable not set")
        timeout = self._settings.http_timeout
        if ctx is not None:
            ctx.check()
            timeout = ctx.timeout(timeout)
        try:
            with httpx.Client(timeout=timeout) as client:
                resp = client.get(
                    f"{self._settings.weather_base_url.rstrip('/')}/{endpoint}",
                    params={"key": api_key, **params},
                    headers={"Accept": "application/json"},
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=f"failed to execute request: {e}")
        if resp.status_code != 200:
            try:
                err = resp.json().get("error") or {}
                message = f"API error {err.get('code')}: {err.get('message')}"
            except ValueError:
                message = f"API error (status {resp.status_code}): {resp.text}"
            raise ApiError(code="API_ERROR", message=message, http_status=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(code="API_ERROR", message=f"failed to parse response: {e}")
