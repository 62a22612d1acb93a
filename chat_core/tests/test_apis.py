from datetime import date

import pytest

from chat_core.domain.exceptions import ApiError, NotFound, ValidationError
from chat_core.infrastructure.apis.airport import AirportClient
from chat_core.infrastructure.apis.holidays import Holiday, HolidayCalendarClient, parse_calendar
from chat_core.infrastructure.apis.weather import WeatherClient
from chat_core.tools.registry import ToolRegistry
from chat_core.tools.weather import ForecastTool, WeatherTool

ICS = b"""BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//test//holidays//EN
BEGIN:VEVENT
UID:1@test
DTSTART;VALUE=DATE:20250101
SUMMARY:New Year's Day
END:VEVENT
BEGIN:VEVENT
UID:2@test
DTSTART;VALUE=DATE:20250106
SUMMARY:Epiphany
END:VEVENT
END:VCALENDAR
"""


class SettingsStub:
    http_timeout = 1.0
    weather_api_key = "w-key"
    weather_base_url = "https://api.weather.test/v1"
    airport_base_url = "https://airports.test/airports"
    holiday_calendar_link = "https://calendar.test/holidays.ics"


def _fake_client(monkeypatch, status_code=200, body=None, content=b""):
    captured = {}

    class Resp:
        def __init__(self):
            self.status_code = status_code
            self.content = content
            self.text = str(body)

        def json(self):
            if body is None:
                raise ValueError("no json body")
            return body

    class Client:
        def __init__(self, *a, **kw):
            captured["client_kwargs"] = kw

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def get(self, url, params=None, headers=None):
            captured["url"] = url
            captured["params"] = params
            return Resp()

    monkeypatch.setattr("httpx.Client", Client)
    return captured


def test_parse_calendar_keeps_order():
    assert parse_calendar(ICS) == [
        Holiday(day=date(2025, 1, 1), name="New Year's Day"),
        Holiday(day=date(2025, 1, 6), name="Epiphany"),
    ]


def test_calendar_client_downloads_ics(monkeypatch):
    captured = _fake_client(monkeypatch, content=ICS)

    events = HolidayCalendarClient(cfg=SettingsStub()).load()

    assert [e.name for e in events] == ["New Year's Day", "Epiphany"]
    assert captured["url"] == "https://calendar.test/holidays.ics"
    assert captured["client_kwargs"]["follow_redirects"] is True


def test_calendar_client_http_error(monkeypatch):
    _fake_client(monkeypatch, status_code=503)
    with pytest.raises(ApiError):
        HolidayCalendarClient(cfg=SettingsStub()).load()


def test_weather_client_sends_key_and_query(monkeypatch):
    body = {"location": {"name": "Paris", "country": "France"}, "current": {"temp_c": 18}}
    captured = _fake_client(monkeypatch, body=body)

    res = WeatherClient(SettingsStub()).current("Paris")

    assert res.location.name == "Paris"
    assert res.current.temp_c == 18
    assert captured["url"] == "https://api.weather.test/v1/current.json"
    assert captured["params"]["key"] == "w-key"
    assert captured["params"]["q"] == "Paris"


def test_weather_client_forecast_params(monkeypatch):
    body = {"location": {"name": "Paris", "country": "France"}, "forecast": {"forecastday": []}}
    captured = _fake_client(monkeypatch, body=body)

    WeatherClient(SettingsStub()).forecast("Paris", 2, hour=9, date="2025-01-02")

    assert captured["params"]["days"] == "2"
    assert captured["params"]["hour"] == "9"
    assert captured["params"]["dt"] == "2025-01-02"


def test_weather_client_api_error(monkeypatch):
    _fake_client(monkeypatch, status_code=400, body={"error": {"code": 1006, "message": "No matching location found."}})
    with pytest.raises(ApiError) as exc:
        WeatherClient(SettingsStub()).current("Nowhere")
    assert exc.value.message == "API error 1006: No matching location found."


def test_weather_client_unexpected_body_is_api_error(monkeypatch):
    _fake_client(monkeypatch, body={})
    client = WeatherClient(SettingsStub())

    with pytest.raises(ApiError) as exc:
        client.current("Barcelona")
    assert exc.value.message.startswith("failed to parse response")
    with pytest.raises(ApiError):
        client.forecast("Barcelona", 3)


def test_weather_tools_report_unexpected_body_as_text(monkeypatch):
    _fake_client(monkeypatch, body={})
    client = WeatherClient(SettingsStub())
    registry = ToolRegistry([WeatherTool(client), ForecastTool(client)])

    weather = registry.execute("get_weather", '{"location": "Barcelona"}')
    forecast = registry.execute("get_forecast", '{"location": "Barcelona"}')

    assert weather.startswith("failed to get weather: failed to parse response")
    assert forecast.startswith("failed to get forecast: failed to parse response")


def test_weather_client_requires_key(monkeypatch):
    _fake_client(monkeypatch, body={})

    class NoKey(SettingsStub):
        weather_api_key = None

    with pytest.raises(ValidationError):
        WeatherClient(NoKey()).current("Paris")


def test_airport_client(monkeypatch):
    captured = _fake_client(
        monkeypatch,
        body={"ICAO": "EDDM", "name": "Munich", "url": "https://www.munich-airport.de", "last_update": "2024"},
    )

    info = AirportClient(SettingsStub()).get(" eddm ")

    assert (info.icao, info.name) == ("EDDM", "Munich")
    assert captured["url"] == "https://airports.test/airports/EDDM"


def test_airport_client_validation_and_not_found(monkeypatch):
    with pytest.raises(ValidationError):
        AirportClient(SettingsStub()).get("EDD")

    _fake_client(monkeypatch, status_code=404, body={"error": {"message": "Airport XXXX not found"}})
    with pytest.raises(NotFound) as exc:
        AirportClient(SettingsStub()).get("XXXX")
    assert exc.value.message == "airport not found: Airport XXXX not found"
