"""Chat Core 顶层包。

该包提供对话助手后端的核心实现，包括配置加载、领域模型、
Provider 适配、工具系统、基于 LangGraph 的回复循环、
会话编排与持久化存储等能力。
"""

from chat_core.api.service import ChatService, create_default_service

__all__ = ["ChatService", "create_default_service"]
