"""投入順に1件ずつ処理するイベントキュー

サインイン時の全置き換え（リモート取得を含む）と、その間に投入された
ローカル変更が交互に混ざらないよう、ジョブを投入順に直列実行する。
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Callable, Optional, TypeVar, Union

T = TypeVar("T")


class EventQueue:
    """FIFOでジョブを直列実行する"""

    def __init__(self) -> None:
        self._tail: Optional[asyncio.Future] = None
        self.pending = 0

    async def run(self, job: Callable[[], Union[T, Awaitable[T]]]) -> T:
        previous = self._tail
        done: asyncio.Future = asyncio.get_running_loop().create_future()
        self._tail = done
        self.pending += 1
        try:
            if previous is not None and not previous.done():
                await asyncio.shield(previous)
            result = job()
            if inspect.isawaitable(result):
                result = await result
            return result
        finally:
            self.pending -= 1
            if previous is not None and not previous.done():
                # 待機中にキャンセルされた場合も、後続は前のジョブの完了を待つ
                previous.add_done_callback(lambda _: done.done() or done.set_result(None))
            else:
                done.set_result(None)
                if self._tail is done:
                    self._tail = None
