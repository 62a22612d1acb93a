import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.conversation import Conversation, ConversationStore, Message
from chat_core.domain.exceptions import ConflictError, NotFound, StoreError


def _dump_ts(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _load_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class JsonConversationStore(ConversationStore):
    """每个会话一个 JSON 文件：<root>/conversations/<id>.json。

    写入先落临时文件再 os.replace，保证读者看不到半截文件；
    进程内用一把锁串行化“检查版本 + 写入”。
    """

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._conv_root = self._root / "conversations"
        self._conv_root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def create(self, conversation: Conversation) -> None:
        with self._lock:
            path = self._path(conversation.id)
            if path.exists():
                raise ConflictError(f"conversation already exists: {conversation.id}")
            self._write(path, conversation)

    def update(self, conversation: Conversation) -> None:
        with self._lock:
            path = self._path(conversation.id)
            if not path.exists():
                raise NotFound(f"conversation not found: {conversation.id}")
            stored = self._read(path)
            if stored.version != conversation.version:
                raise ConflictError(
                    f"conversation {conversation.id} was modified concurrently "
                    f"(expected version {conversation.version}, found {stored.version})"
                )
            conversation.version += 1
            try:
                self._write(path, conversation)
            except StoreError:
                conversation.version -= 1
                raise

    def describe(self, conversation_id: str) -> Conversation:
        path = self._path(conversation_id)
        if not path.exists():
            raise NotFound(f"conversation not found: {conversation_id}")
        return self._read(path)

    def list(self) -> List[Conversation]:
        items: List[Conversation] = []
        for path in self._conv_root.glob("*.json"):
            try:
                items.append(self._read(path).summary())
            except StoreError:
                continue
        items.sort(key=lambda c: c.updated_at, reverse=True)
        return items

    # ---- 辅助方法 ----

    def _path(self, conversation_id: str) -> Path:
        if not conversation_id or "/" in conversation_id or "\\" in conversation_id or conversation_id.startswith("."):
            raise NotFound(f"conversation not found: {conversation_id}")
        return self._conv_root / f"{conversation_id}.json"

    def _read(self, path: Path) -> Conversation:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return self._to_conversation(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise StoreError(code="STORE_READ_ERROR", message=f"{path.name}: {e}")

    def _write(self, path: Path, conversation: Conversation) -> None:
        tmp_path = path.with_name(f"{path.stem}.{uuid4().hex}.json.tmp")
        try:
            tmp_path.write_text(
                json.dumps(self._to_dict(conversation), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise StoreError(code="STORE_WRITE_ERROR", message=str(e))

    @staticmethod
    def _to_dict(conversation: Conversation) -> Dict[str, Any]:
        return {
            "id": conversation.id,
            "title": conversation.title,
            "created_at": _dump_ts(conversation.created_at),
            "updated_at": _dump_ts(conversation.updated_at),
            "version": conversation.version,
            "messages": [
                {
                    "id": m.id,
                    "role": m.role,
                    "content": m.content,
                    "created_at": _dump_ts(m.created_at),
                    "updated_at": _dump_ts(m.updated_at),
                }
                for m in conversation.messages
            ],
        }

    @staticmethod
    def _to_conversation(data: Dict[str, Any]) -> Conversation:
        return Conversation(
            id=data["id"],
            title=data.get("title") or "",
            created_at=_load_ts(data["created_at"]),
            updated_at=_load_ts(data["updated_at"]),
            version=int(data.get("version", 0)),
            messages=[
                Message(
                    id=m["id"],
                    role=m["role"],
                    content=m["content"],
                    created_at=_load_ts(m["created_at"]),
                    updated_at=_load_ts(m["updated_at"]),
                )
                for m in data.get("messages") or []
            ],
        )
