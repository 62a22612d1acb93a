"""请求上下文：trace_id、截止时间与取消信号。

同步实现下没有类似 Go context 的机制，这里用 threading.Event
加单调时钟截止时间来模拟。每次调用模型或执行工具之前都会先调用
check()；阻塞的网络调用通过 run() 放到后台线程执行，调用方线程
在取消或超过截止时间时立即返回 OperationCancelled，不再等待响应。
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar
from uuid import uuid4

from chat_core.domain.exceptions import OperationCancelled

T = TypeVar("T")

# run() 等待后台调用时检查取消信号的间隔（秒）
POLL_INTERVAL = 0.05


@dataclass
class RequestContext:
    trace_id: str = field(default_factory=lambda: f"tr-{uuid4().hex}")
    deadline: Optional[float] = None  # time.monotonic() 时间点
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def with_timeout(cls, seconds: Optional[float], trace_id: Optional[str] = None) -> "RequestContext":
        """创建一个在 seconds 秒后过期的上下文；seconds 为空表示不设截止时间。"""
        deadline = time.monotonic() + seconds if seconds else None
        if trace_id:
            return cls(trace_id=trace_id, deadline=deadline)
        return cls(deadline=deadline)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def check(self) -> None:
        """已取消或已过截止时间时抛出 OperationCancelled。"""
        if self._cancelled.is_set():
            raise OperationCancelled("request was cancelled")
        left = self.remaining()
        if left is not None and left <= 0:
            raise OperationCancelled("request deadline exceeded")

    def timeout(self, default: float) -> float:
        """返回本次网络调用可用的超时时间（不超过剩余时间）。"""
        left = self.remaining()
        if left is None:
            return default
        return max(min(default, left), 0.001)

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """在后台线程执行阻塞调用，并在等待期间响应取消与截止时间。

        取消后后台调用的结果会被丢弃；其运行时长仍受 httpx 超时约束。
        fn 抛出的异常原样转抛给调用方。
        """
        self.check()
        done = threading.Event()
        outcome: dict = {}

        def target() -> None:
            try:
                outcome["result"] = fn(*args, **kwargs)
            except BaseException as e:
                outcome["error"] = e
            finally:
                done.set()

        worker = threading.Thread(target=target, name=f"ctx-{self.trace_id[-8:]}", daemon=True)
        worker.start()
        while not done.wait(POLL_INTERVAL):
            self.check()

        # 调用在取消或超时之后才完成时同样视为已取消
        self.check()
        if "error" in outcome:
            raise outcome["error"]
        return outcome["result"]


def call_in_context(ctx: Optional[RequestContext], fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """ctx 为空时直接调用，否则交给 ctx.run()。"""
    if ctx is None:
        return fn(*args, **kwargs)
    return ctx.run(fn, *args, **kwargs)
