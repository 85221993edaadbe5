"""一時的なステータス表示（同期状況・通知・読み込み中表示）"""

from __future__ import annotations

import logging
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Deque, Iterator, List, Optional

from .exceptions import DaybookError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatusMessage:
    level: str  # info | success | error
    text: str
    error: Optional[DaybookError] = None
    created_at: str = ""


StatusListener = Callable[[StatusMessage], None]


class StatusBoard:
    """直近のステータスメッセージと進行中の処理を保持する"""

    def __init__(self, max_messages: int = 20):
        self._messages: Deque[StatusMessage] = deque(maxlen=max_messages)
        self._listeners: List[StatusListener] = []
        self._busy: List[str] = []

    def subscribe(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def info(self, text: str) -> StatusMessage:
        return self._push(StatusMessage("info", text, created_at=self._now()))

    def success(self, text: str) -> StatusMessage:
        return self._push(StatusMessage("success", text, created_at=self._now()))

    def report(self, error: DaybookError, text: Optional[str] = None) -> StatusMessage:
        """非致命的なエラーを通知する"""
        message = StatusMessage("error", text or str(error), error, self._now())
        logger.warning("%s: %s", type(error).__name__, message.text)
        return self._push(message)

    @contextmanager
    def busy(self, label: str) -> Iterator[None]:
        """読み込み中表示。ブロックを抜けると解除される。"""
        self._busy.append(label)
        try:
            yield
        finally:
            self._busy.remove(label)

    @property
    def busy_labels(self) -> List[str]:
        return list(self._busy)

    @property
    def messages(self) -> List[StatusMessage]:
        return list(self._messages)

    def latest(self) -> Optional[StatusMessage]:
        return self._messages[-1] if self._messages else None

    def errors(self) -> List[StatusMessage]:
        return [m for m in self._messages if m.level == "error"]

    def clear(self) -> None:
        self._messages.clear()

    def _push(self, message: StatusMessage) -> StatusMessage:
        self._messages.append(message)
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception:
                logger.exception("Status listener failed")
        return message

    @staticmethod
    def _now() -> str:
        return datetime.now().isoformat(timespec="seconds")
