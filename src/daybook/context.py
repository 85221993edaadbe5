"""Daybook: 各コンポーネントを組み立てたアプリケーションコンテキスト

UI層（HTTP API など）はこのオブジェクトを受け取って操作する。
ストアを変更する操作とナビゲーションはすべて EventQueue を通して
投入順に直列実行される。リモートへの反映はその後バックグラウンドで行う。

Related Classes: RecordStore, ViewSync, RemoteMirror, ScheduleAssistant
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Optional

from src.assistant import ChatReply, CompletionClient, OllamaClient, PreferencesRepository, ScheduleAssistant
from src.remote_sync import DocumentStore, HttpDocumentStore, RemoteMirror

from .config import Config
from .events import EventQueue
from .exceptions import RemoteSyncError
from .local_store import KeyValueStore, SQLiteKeyValueStore
from .models import Draft, Item, ItemKind, Task
from .status import StatusBoard
from .store import RecordStore
from .view_sync import ViewSync

logger = logging.getLogger(__name__)


class Daybook:
    """ノート・タスク・表示・同期・AIチャットをまとめたコンテキスト"""

    def __init__(
        self,
        store: RecordStore,
        views: ViewSync,
        status: StatusBoard,
        *,
        mirror: Optional[RemoteMirror] = None,
        assistant: Optional[ScheduleAssistant] = None,
        queue: Optional[EventQueue] = None,
    ):
        self.store = store
        self.views = views
        self.status = status
        self.mirror = mirror
        self.assistant = assistant
        self.queue = queue or EventQueue()

    @classmethod
    def build(
        cls,
        config: Optional[Config] = None,
        *,
        storage: Optional[KeyValueStore] = None,
        documents: Optional[DocumentStore] = None,
        completion: Optional[CompletionClient] = None,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = datetime.now,
    ) -> "Daybook":
        """設定からコンポーネントを生成して接続する"""
        config = config or Config()
        if storage is None:
            storage = SQLiteKeyValueStore(Path(config.db_path) if config.db_path else None)

        status = StatusBoard()
        store = RecordStore(storage, status, now=now)
        views = ViewSync(store, today=today, status=status)

        if documents is None and config.remote.base_url:
            documents = HttpDocumentStore(
                config.remote.base_url,
                timeout=config.remote.timeout_seconds,
                token=config.remote.token,
            )
        mirror = RemoteMirror(store, status, documents) if documents is not None else None

        if completion is None:
            completion = OllamaClient(
                host=config.ollama.host,
                model=config.ollama.model,
                temperature=config.ollama.temperature,
                max_tokens=config.ollama.max_tokens,
            )
        assistant = ScheduleAssistant(
            completion,
            PreferencesRepository(storage),
            store.snapshot,
            status=status,
            now=now,
        )
        return cls(store, views, status, mirror=mirror, assistant=assistant)

    def start(self) -> None:
        """永続化済みデータを読み込み、全領域を描画する"""
        self.store.load()
        self.views.refresh_all()
        logger.info(
            "Daybook started with %d notes and %d tasks",
            len(self.store.notes),
            len(self.store.tasks),
        )

    def attach_remote(self, documents: DocumentStore) -> None:
        if self.mirror is None:
            self.mirror = RemoteMirror(self.store, self.status)
        self.mirror.attach(documents)

    async def close(self) -> None:
        if self.mirror is not None:
            await self.mirror.drain()

    # ---- ノート・タスク ----

    async def add_note(self, text: str, day: Any) -> int:
        return await self.queue.run(lambda: self._add(ItemKind.NOTE, Draft(text=text, date=day)))

    async def add_task(self, text: str, day: Any, priority: Any = None) -> int:
        return await self.queue.run(
            lambda: self._add(ItemKind.TASK, Draft(text=text, date=day, priority=priority))
        )

    async def submit_task_form(self, text: str, day: Any, priority: Any = None) -> int:
        """タスクフォームの送信。編集中なら更新、そうでなければ追加する。"""

        def submit() -> int:
            editing = self.views.state.editing_id
            if editing is None:
                return self._add(ItemKind.TASK, Draft(text=text, date=day, priority=priority))
            self._update(editing, text=text, date=day, priority=priority)
            self.views.cancel_edit()
            return editing

        return await self.queue.run(submit)

    async def update_task(self, item_id: int, **patch: Any) -> Task:
        return await self.queue.run(lambda: self._update(item_id, **patch))

    async def toggle_task(self, item_id: int) -> bool:
        def toggle() -> bool:
            completed = self.store.toggle_completed(item_id)
            if self.mirror is not None:
                task = self.store.get(item_id)
                self.mirror.item_updated(task, {"completed": completed})
            self.status.success("タスクを完了にしました" if completed else "タスクを未完了に戻しました")
            return completed

        return await self.queue.run(toggle)

    async def remove(self, item_id: int) -> Item:
        def remove() -> Item:
            removed = self.store.remove(item_id)
            if self.mirror is not None:
                self.mirror.item_removed(removed)
            self.status.info("記録を削除しました" if removed.kind is ItemKind.NOTE else "タスクを削除しました")
            return removed

        return await self.queue.run(remove)

    def _add(self, kind: ItemKind, draft: Draft) -> int:
        item_id = self.store.add(kind, draft)
        if self.mirror is not None:
            self.mirror.item_added(self.store.get(item_id))
        self.status.success("記録を追加しました" if kind is ItemKind.NOTE else "タスクを追加しました")
        return item_id

    def _update(self, item_id: int, **patch: Any) -> Task:
        updated = self.store.update(item_id, **patch)
        if self.mirror is not None:
            fields = {
                "text": updated.text,
                "date": updated.date,
                "priority": updated.priority.value,
            }
            self.mirror.item_updated(updated, fields)
        self.status.success("タスクを更新しました")
        return updated

    # ---- 認証 ----

    async def sign_in(self, user_id: str) -> bool:
        if self.mirror is None:
            self.status.report(RemoteSyncError("リモートストアが設定されていません"))
            return False
        return await self.queue.run(lambda: self.mirror.on_auth_state_changed(user_id))

    async def sign_out(self) -> bool:
        if self.mirror is None:
            return await self.queue.run(lambda: self._clear())
        return await self.queue.run(lambda: self.mirror.on_auth_state_changed(None))

    def _clear(self) -> bool:
        self.store.replace_all([], [])
        return True

    # ---- ナビゲーション ----

    async def shift_month(self, delta: int) -> None:
        await self.queue.run(lambda: self.views.shift_month(delta))

    async def show_month(self, year: int, month: int) -> None:
        await self.queue.run(lambda: self.views.show_month(year, month))

    async def shift_day(self, delta: int) -> None:
        await self.queue.run(lambda: self.views.shift_day(delta))

    async def select_day(self, day: Any) -> None:
        await self.queue.run(lambda: self.views.select_day(day))

    async def open_day(self, day: Any) -> None:
        await self.queue.run(lambda: self.views.open_day(day))

    async def close_modal(self) -> None:
        await self.queue.run(self.views.close_modal)

    async def begin_edit(self, item_id: int) -> Task:
        return await self.queue.run(lambda: self.views.begin_edit(item_id))

    async def cancel_edit(self) -> None:
        await self.queue.run(self.views.cancel_edit)

    # ---- AIチャット ----

    async def chat(self, message: str) -> ChatReply:
        if self.assistant is None:
            raise RemoteSyncError("AIアシスタントが設定されていません")
        return await self.assistant.send(message)
