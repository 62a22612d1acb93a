"""机场信息工具。"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from pydantic import BaseModel

from chat_core.domain.context import RequestContext
from chat_core.domain.exceptions import BusinessError, OperationCancelled
from chat_core.infrastructure.apis.airport import AirportClient
from chat_core.tools.base import Tool, parse_arguments
from chat_core.tools.definitions import ToolParam

logger = logging.getLogger(__name__)


class AirportArgs(BaseModel):
    icao_code: str


class AirportTool(Tool):
    name = "get_airport_info"
    description = (
        "Get airport information by ICAO code (4-letter airport code). "
        "NOTE: This API works best for German airports (e.g., EDDF for Frankfurt, "
        "EDDM for Munich, EDDB for Berlin). If an airport is not found, suggest "
        "trying a German airport code instead."
    )

    def __init__(self, client: Optional[AirportClient] = None):
        self._client = client or AirportClient()

    def params(self) -> Dict[str, ToolParam]:
        return {
            "icao_code": ToolParam(
                name="icao_code",
                description="4-letter ICAO airport code (e.g., EDDF for Frankfurt, EDDM for Munich)",
                required=True,
                schema={"type": "string"},
            ),
        }

    def execute(self, arguments: str, ctx: Optional[RequestContext] = None) -> str:
        args = parse_arguments(arguments, AirportArgs, "failed to parse ICAO code parameter")
        if isinstance(args, str):
            return args

        try:
            info = self._client.get(args.icao_code, ctx)
        except OperationCancelled:
            raise
        except BusinessError as e:
            logger.error("Failed to get airport info", extra={"extra": {"icao_code": args.icao_code, "error": e.message}})
            return f"failed to get airport info: {e.message}"

        return f"Airport: {info.name} (ICAO: {info.icao})\nWebsite: {info.url}"
