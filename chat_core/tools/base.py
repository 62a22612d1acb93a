"""工具基类。

所有工具继承 Tool，并遵守同一个约定：
execute 只返回给模型阅读的文本；参数错误、第三方 API 失败都编码进
返回文本里，让模型在下一轮自行纠正，而不是抛出异常。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from chat_core.domain.context import RequestContext
from chat_core.tools.definitions import ToolDef, ToolParam

ArgsT = TypeVar("ArgsT", bound=BaseModel)


class Tool(ABC):
    """Abstract base for all tools."""

    name: str
    description: str

    def params(self) -> Dict[str, ToolParam]:
        """工具参数定义，默认无参数。"""
        return {}

    def definition(self) -> ToolDef:
        return ToolDef(name=self.name, description=self.description, params=self.params())

    @abstractmethod
    def execute(self, arguments: str, ctx: Optional[RequestContext] = None) -> str:
        """执行工具；arguments 为模型给出的原始 JSON 字符串。"""
        ...


def parse_arguments(
    raw: str,
    model: Type[ArgsT],
    prefix: str = "failed to parse tool call arguments",
) -> Union[ArgsT, str]:
    """用 pydantic 模型解析原始参数。

    成功返回模型实例，失败返回 "<prefix>: <问题列表>"，可直接交给模型。
    """
    text = (raw or "").strip() or "{}"
    try:
        return model.model_validate_json(text)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
            for err in exc.errors()
        )
        return f"{prefix}: {problems}"
