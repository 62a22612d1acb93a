"""OpenAI 兼容的 chat/completions Provider 适配器。

OpenAI 与 GLM / BigModel 都使用同一套 chat/completions 协议：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

本实现只依赖公共字段：model/messages/temperature/max_tokens/top_p/tools/tool_choice。
工具调用的 arguments 按模型给出的原始字符串保存，不在这一层解析。
"""

import json
from typing import Any, Dict, List, Optional

import httpx

from chat_core.config.settings import settings
from chat_core.domain.context import RequestContext, call_in_context
from chat_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from chat_core.domain.models import (
    ChatChoice,
    ChatMessage,
    ChatRequest,
    ChatResult,
    ChatUsage,
)
from chat_core.providers.registry import ModelConfig, ProviderConfig
from chat_core.tools.definitions import ToolCall, ToolDef


class ChatCompletionsClient:
    """OpenAI 兼容 Provider 客户端实现。"""

    def __init__(self, config: ProviderConfig, cfg=settings):
        self._config = config
        self._settings = cfg
        self.name = config.name

    def chat(self, req: ChatRequest, ctx: Optional[RequestContext] = None) -> ChatResult:
        api_key = getattr(self._settings, f"{self.name}_api_key", None)
        if not api_key:
            raise ValidationError(code="MISSING_API_KEY", message=f"{self.name.upper()}_API_KEY not set")
        model_cfg = self._model_config(req.model)
        payload = self._build_payload(req, model_cfg)
        timeout = self._settings.http_timeout
        if ctx is not None:
            ctx.check()
            timeout = ctx.timeout(timeout)
        # 取消时调用方立即收到 OperationCancelled，后台请求的响应被丢弃
        resp = call_in_context(ctx, self._post, payload, api_key, timeout)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=f"{self.name} rate limit", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(code="API_ERROR", message=f"invalid JSON in {self.name} response: {e}", http_status=502)
        if not isinstance(data, dict):
            raise ApiError(code="API_ERROR", message=f"unexpected {self.name} response body", http_status=502)
        return self._parse_response(data, req)

    # ---- 辅助方法 ----

    def _post(self, payload: dict, api_key: str, timeout: float) -> httpx.Response:
        base = getattr(self._settings, f"{self.name}_base_url", None) or self._config.base_url
        try:
            with httpx.Client(timeout=timeout, trust_env=False) as client:
                return client.post(
                    f"{base.rstrip('/')}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), http_status=503)

    def _model_config(self, logical_name: str) -> ModelConfig:
        try:
            return self._config.models[logical_name]
        except KeyError:
            raise ValidationError(
                code="UNKNOWN_MODEL",
                message=f"model {logical_name!r} is not configured for provider {self.name}",
            )

    def _build_payload(self, req: ChatRequest, model_cfg: ModelConfig) -> dict:
        msgs = [self._message_to_payload(m) for m in req.messages]
        payload: Dict[str, Any] = {
            "model": model_cfg.provider_model,
            "messages": msgs,
            "temperature": req.temperature if req.temperature is not None else model_cfg.default_temperature,
            "max_tokens": req.max_tokens or model_cfg.max_tokens,
            "stream": False,
        }
        if req.top_p is not None:
            payload["top_p"] = req.top_p
        if req.tools:
            payload["tools"] = [self._serialize_tool(tool) for tool in req.tools]
            payload["tool_choice"] = req.tool_choice
        return payload

    def _parse_response(self, data: dict, req: ChatRequest) -> ChatResult:
        choices: list[ChatChoice] = []
        for i, ch in enumerate(data.get("choices") or []):
            msg = ch.get("message") or {}
            cm = self._build_chat_message(msg)
            choices.append(ChatChoice(index=ch.get("index", i), message=cm, finish_reason=ch.get("finish_reason")))
        usage = None
        usage_raw = data.get("usage") or {}
        if usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("prompt_tokens", 0),
                completion_tokens=usage_raw.get("completion_tokens", 0),
                total_tokens=usage_raw.get("total_tokens", 0),
            )
        return ChatResult(provider=self.name, model=req.model, choices=choices, usage=usage, raw=data)

    def _build_chat_message(self, payload: Dict[str, Any]) -> ChatMessage:
        """解析响应中的 message，兼容 tool_calls/function_call。"""

        role = payload.get("role") or "assistant"
        content = payload.get("content") or ""
        tool_calls: List[ToolCall] = []
        for idx, call in enumerate(payload.get("tool_calls") or []):
            func = call.get("function") or {}
            tool_calls.append(
                ToolCall(
                    id=call.get("id") or f"tool_call_{idx}",
                    name=func.get("name") or call.get("name") or "",
                    arguments=self._raw_arguments(func.get("arguments")),
                )
            )

        function_call = payload.get("function_call")
        if function_call:
            tool_calls.append(
                ToolCall(
                    id=function_call.get("id") or "function_call",
                    name=function_call.get("name") or "",
                    arguments=self._raw_arguments(function_call.get("arguments")),
                )
            )

        return ChatMessage(
            role=role,
            content=content,
            tool_calls=tool_calls or None,
            tool_call_id=payload.get("tool_call_id"),
        )

    def _message_to_payload(self, message: ChatMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": message.role}
        if message.content or not message.tool_calls:
            payload["content"] = message.content
        if message.tool_calls:
            payload["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in message.tool_calls
            ]
        if message.tool_call_id:
            payload["tool_call_id"] = message.tool_call_id
        return payload

    @staticmethod
    def _serialize_tool(tool: ToolDef) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.to_schema(),
            },
        }

    @staticmethod
    def _raw_arguments(raw: Any) -> str:
        if raw is None:
            return "{}"
        if isinstance(raw, str):
            return raw
        return json.dumps(raw, ensure_ascii=False)
