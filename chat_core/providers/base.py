"""Provider 抽象接口。

上层 Assistant 不直接依赖具体厂商的 HTTP SDK，而是依赖此协议：

- 每个厂商（或兼容协议）实现一个 ProviderClient。
- 负责：将 ChatRequest 转成具体 API 请求，并把响应 JSON 解析为 ChatResult。

这样可以在不改回复循环代码的前提下接入更多厂商。
"""

from typing import Optional, Protocol

from chat_core.domain.context import RequestContext
from chat_core.domain.models import ChatRequest, ChatResult


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - chat(req, ctx): 执行一次非流式对话调用，返回统一的 ChatResult。
      传输/接口错误直接抛出 BusinessError 子类，不做重试。
    """

    name: str

    def chat(self, req: ChatRequest, ctx: Optional[RequestContext] = None) -> ChatResult:
        ...
