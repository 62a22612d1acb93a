"""工具注册表：注册、枚举与按名称分发。

注册表在进程启动时构建一次，此后只读，可被多个会话并发共享。
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from chat_core.domain.context import RequestContext, call_in_context
from chat_core.domain.exceptions import ToolNotFound
from chat_core.tools.base import Tool
from chat_core.tools.definitions import ToolDef

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Manages tool registration and dispatch."""

    def __init__(self, tools: Optional[List[Tool]] = None):
        self._tools: Dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """按名称注册工具；同名工具后注册者覆盖先注册者。"""
        if tool.name in self._tools:
            logger.warning("Tool %s registered twice, replacing previous registration", tool.name)
        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def get(self, name: str) -> Tool:
        if name not in self._tools:
            raise ToolNotFound(name)
        return self._tools[name]

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def definitions(self) -> List[ToolDef]:
        """返回所有工具定义，作为每次模型请求的 tools 参数。"""
        return [tool.definition() for tool in self._tools.values()]

    def execute(self, name: str, arguments: str, ctx: Optional[RequestContext] = None) -> str:
        """按名称执行工具。

        只有“工具不存在”会以 ToolNotFound 失败；参数与下游错误由工具
        自己转换为结果文本。传入 ctx 时工具在后台线程执行，取消或
        超时立即以 OperationCancelled 结束，迟到的结果被丢弃。
        """
        tool = self.get(name)
        return call_in_context(ctx, tool.execute, arguments, ctx)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
