"""对外 API 服务模块。

ChatService 编排会话存储与 Assistant：开启新会话时并发生成标题与回复，
继续会话时顺序地追加消息、生成回复并写回存储。
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

from chat_core.agents.assistant import Assistant, AssistantConfig
from chat_core.config.settings import settings
from chat_core.domain.context import RequestContext
from chat_core.domain.conversation import ROLE_ASSISTANT, ROLE_USER, Conversation, ConversationStore
from chat_core.domain.exceptions import InvalidArgument
from chat_core.infrastructure.logging.logger import logger
from chat_core.infrastructure.storage.json_store import JsonConversationStore
from chat_core.providers import create_provider
from chat_core.tools import default_registry


@dataclass
class StartConversationResult:
    conversation_id: str
    title: str
    reply: str


@dataclass
class ContinueConversationResult:
    reply: str


class ChatService:
    def __init__(self, store: ConversationStore, assistant: Assistant):
        self._store = store
        self._assistant = assistant

    def start_conversation(self, message: str, ctx: Optional[RequestContext] = None) -> StartConversationResult:
        """开启新会话。

        标题与回复并发生成：标题失败只记录告警并保留默认标题；
        回复失败则原样抛出，且不会创建任何会话。
        """
        if not (message or "").strip():
            raise InvalidArgument("message", "message is required")

        conv = Conversation.start(message)
        log_extra = {"conversation_id": conv.id}
        if ctx is not None:
            log_extra["trace_id"] = ctx.trace_id

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="chat-start") as pool:
            title_future = pool.submit(self._assistant.title, conv, ctx)
            reply_future = pool.submit(self._assistant.reply, conv, ctx)

            try:
                reply = reply_future.result()
            except Exception as e:
                logger.error(f"Reply failed: {e}", extra={"extra": dict(log_extra, error=str(e))})
                title_future.cancel()
                raise

            try:
                conv.title = title_future.result()
            except Exception as e:
                logger.warning(
                    "Failed to generate conversation title, keeping default",
                    extra={"extra": dict(log_extra, error=str(e))},
                )

        conv.append(ROLE_ASSISTANT, reply)
        self._store.create(conv)
        logger.info("Started conversation", extra={"extra": dict(log_extra, title=conv.title)})
        return StartConversationResult(conversation_id=conv.id, title=conv.title, reply=reply)

    def continue_conversation(
        self,
        conversation_id: str,
        message: str,
        ctx: Optional[RequestContext] = None,
    ) -> ContinueConversationResult:
        if not (conversation_id or "").strip():
            raise InvalidArgument("conversation_id", "conversation id is required")
        if not (message or "").strip():
            raise InvalidArgument("message", "message is required")

        conv = self._store.describe(conversation_id)
        conv.append(ROLE_USER, message)

        try:
            reply = self._assistant.reply(conv, ctx)
        except Exception as e:
            logger.error(f"Reply failed: {e}", extra={"extra": {"conversation_id": conversation_id, "error": str(e)}})
            raise

        conv.append(ROLE_ASSISTANT, reply)
        self._store.update(conv)
        logger.info("Continued conversation", extra={"extra": {"conversation_id": conversation_id, "version": conv.version}})
        return ContinueConversationResult(reply=reply)

    def describe_conversation(self, conversation_id: str) -> Conversation:
        if not (conversation_id or "").strip():
            raise InvalidArgument("conversation_id", "conversation id is required")
        return self._store.describe(conversation_id)

    def list_conversations(self) -> List[Conversation]:
        return self._store.list()


def create_default_service(cfg=settings) -> ChatService:
    """按配置组装生产环境的 ChatService。"""
    store = JsonConversationStore(root=cfg.storage_root)
    assistant = Assistant(
        provider_client=create_provider(cfg.default_provider),
        registry=default_registry(cfg),
        config=AssistantConfig.from_settings(cfg),
    )
    return ChatService(store, assistant)

