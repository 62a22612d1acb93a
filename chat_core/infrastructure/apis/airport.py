"""机场信息（airport-web.appspot.com）客户端。"""

from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from chat_core.config.settings import settings
from chat_core.domain.context import RequestContext
from chat_core.domain.exceptions import ApiError, NetworkError, NotFound, ValidationError


class AirportInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    icao: str = Field(default="", alias="ICAO")
    last_update: str = ""
    name: str = ""
    url: str = ""


class AirportClient:
    def __init__(self, cfg=settings):
        self._settings = cfg

    def get(self, icao_code: str, ctx: Optional[RequestContext] = None) -> AirportInfo:
        code = (icao_code or "").strip().upper()
        if len(code) != 4:
            raise ValidationError(code="INVALID_ICAO", message="invalid ICAO code: must be 4 characters")

        timeout = self._settings.http_timeout
        if ctx is not None:
            ctx.check()
            timeout = ctx.timeout(timeout)
        try:
            with httpx.Client(timeout=timeout) as client:
                resp = client.get(
                    f"{self._settings.airport_base_url.rstrip('/')}/{code}",
                    headers={"Accept": "application/json"},
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=f"failed to execute request: {e}")

        if resp.status_code == 404:
            try:
                detail = (resp.json().get("error") or {}).get("message") or code
            except ValueError:
                detail = code
            raise NotFound(f"airport not found: {detail}")
        if resp.status_code != 200:
            raise ApiError(
                code="API_ERROR",
                message=f"API error (status {resp.status_code}): {resp.text}",
                http_status=resp.status_code,
            )
        try:
            return AirportInfo.model_validate(resp.json())
        except ValueError as e:
            raise ApiError(code="API_ERROR", message=f"failed to parse response: {e}")
