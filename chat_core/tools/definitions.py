"""工具数据结构定义。

这些 dataclass 描述了“工具调用”的 schema，既用于：
- 将可用工具列表暴露给 LLM（ToolDef / ToolParam）。
- 在回复循环中保存模型触发的工具调用（ToolCall）。
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List


@dataclass
class ToolParam:
    """单个工具参数的定义。"""

    name: str
    description: str
    required: bool
    schema: Dict[str, Any]


@dataclass
class ToolDef:
    """一个可供 LLM 调用的工具定义。"""

    name: str
    description: str
    params: Dict[str, ToolParam] = field(default_factory=dict)

    def to_schema(self) -> Dict[str, Any]:
        """转换为 JSON Schema 形式的参数描述（type=object）。"""
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, param in self.params.items():
            schema = param.schema or {"type": "string"}
            if param.description:
                schema = {**schema, "description": param.description}
            properties[name] = schema
            if param.required:
                required.append(name)
        parameters: Dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            parameters["required"] = required
        return parameters


@dataclass
class ToolCall:
    """模型发起的一次工具调用请求。

    arguments 保持模型给出的原始 JSON 字符串，由具体工具自行解析。
    """

    id: str
    name: str
    arguments: str = "{}"
