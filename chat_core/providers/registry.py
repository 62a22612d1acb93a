"""Provider 与模型配置。

本模块将“逻辑模型名”与“具体厂商模型名”解耦：

- 逻辑名（logical_name）：在代码里使用的统一名称，例如 "chat"、"title"。
- provider_model：厂商实际提供的模型 ID，例如 "gpt-4.1"。

上层只关心逻辑名，具体用哪个底层模型由这里集中配置，便于后续升级或切换。"""

from dataclasses import dataclass
from typing import Dict, Mapping

from chat_core.domain.exceptions import ValidationError


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str
    max_tokens: int
    default_temperature: float


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


# OpenAI 配置：回复用 gpt-4.1，标题用更快的小模型
OPENAI_CONFIG = ProviderConfig(
    name="openai",
    base_url="https://api.openai.com/v1",
    models={
        "chat": ModelConfig(
            logical_name="chat",
            provider_model="gpt-4.1",
            max_tokens=4096,
            default_temperature=0.7,
        ),
        "title": ModelConfig(
            logical_name="title",
            provider_model="gpt-4.1-mini",
            max_tokens=64,
            default_temperature=0.2,
        ),
    },
)

# GLM / BigModel 配置（OpenAI 兼容的 chat/completions 接口）
GLM_CONFIG = ProviderConfig(
    name="glm",
    base_url="https://open.bigmodel.cn/api/paas/v4",
    models={
        "chat": ModelConfig(
            logical_name="chat",
            provider_model="glm-4.6",
            max_tokens=4096,
            default_temperature=0.7,
        ),
        "title": ModelConfig(
            logical_name="title",
            provider_model="glm-4.6",
            max_tokens=64,
            default_temperature=0.2,
        ),
    },
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "openai": OPENAI_CONFIG,
    "glm": GLM_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写；未知名称抛 ValidationError。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise ValidationError(code="UNKNOWN_PROVIDER", message=f"unknown provider: {name!r}")
