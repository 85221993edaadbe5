"""RemoteMirror: ローカルの変更をリモートへ反映し、サインイン時に全置き換えする

ローカル書き込みが常に先に確定し、リモートへの書き込みはバックグラウンドで
行う（再試行なし）。失敗はステータス表示に出すだけで、ローカル状態は戻さない。

Related Classes: RecordStore (src/daybook/store.py), Daybook (src/daybook/context.py)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Dict, List, Optional, Set

from src.daybook.exceptions import RemoteSyncError
from src.daybook.models import Item, Task, to_record
from src.daybook.status import StatusBoard
from src.daybook.store import RecordStore

from .documents import RECORDS, TASKS, DocumentStore, RemoteDocument, collection_for

logger = logging.getLogger(__name__)


def remote_payload(item: Item) -> Dict[str, Any]:
    record = to_record(item)
    record.pop("remoteId", None)
    return record


class RemoteMirror:
    """リモートのドキュメントストアとのミラーリング"""

    def __init__(
        self,
        store: RecordStore,
        status: StatusBoard,
        documents: Optional[DocumentStore] = None,
        ready_timeout: float = 30.0,
    ):
        self.store = store
        self.ready_timeout = ready_timeout
        self.status = status
        self.documents: Optional[DocumentStore] = None
        self.user_id: Optional[str] = None
        self._ready = asyncio.Event()
        self._background: Set[asyncio.Task] = set()
        if documents is not None:
            self.attach(documents)

    def attach(self, documents: DocumentStore) -> None:
        """リモートストアを接続し、待機中の処理を再開させる"""
        self.documents = documents
        self._ready.set()

    async def ready(self) -> DocumentStore:
        """接続完了を待つ。ready_timeout 秒で RemoteSyncError。"""
        try:
            await asyncio.wait_for(self._ready.wait(), self.ready_timeout)
        except asyncio.TimeoutError as exc:
            raise RemoteSyncError("リモートストアが利用できません") from exc
        if self.documents is None:
            raise RemoteSyncError("リモートストアが利用できません")
        return self.documents

    @property
    def signed_in(self) -> bool:
        return self.user_id is not None and self.documents is not None

    # ---- 認証状態の変化 ----

    async def fetch_snapshot(self, user_id: str) -> tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """両コレクションを取得し、ローカル形式のレコードへ変換する"""
        documents = await self.ready()
        try:
            records = await asyncio.to_thread(documents.list_by_user, user_id, RECORDS)
            tasks = await asyncio.to_thread(documents.list_by_user, user_id, TASKS)
        except RemoteSyncError:
            raise
        except Exception as exc:
            raise RemoteSyncError(f"リモートデータの取得に失敗しました: {exc}") from exc
        return self._to_local(records), self._to_local(tasks)

    async def on_auth_state_changed(self, user_id: Optional[str]) -> bool:
        """サインインならリモートのスナップショットで置き換え、サインアウトなら消去する

        Returns:
            置き換えが行われた場合True
        """
        if user_id is None:
            self.user_id = None
            self.store.replace_all([], [])
            self.status.info("サインアウトしました")
            return True

        self.user_id = user_id
        with self.status.busy("sync"):
            self.status.info("データを読み込んでいます...")
            try:
                notes, tasks = await self.fetch_snapshot(user_id)
            except RemoteSyncError as exc:
                self.status.report(exc, "データの読み込みに失敗しました")
                return False

        if self.user_id != user_id:
            logger.info("Auth state changed during fetch; discarding snapshot for %s", user_id)
            return False
        self.store.replace_all(notes, tasks)
        self.status.success("データの読み込みが完了しました")
        return True

    # ---- 変更のミラーリング ----

    def item_added(self, item: Item) -> None:
        if self.signed_in:
            self._spawn(self._push_add(self.user_id, item))

    def item_updated(self, task: Task, fields: Dict[str, Any]) -> None:
        if self.signed_in and task.remote_id:
            self._spawn(self._push_update(self.user_id, task.remote_id, fields))

    def item_removed(self, item: Item) -> None:
        if self.signed_in and item.remote_id:
            self._spawn(self._push_delete(self.user_id, collection_for(item.kind), item.remote_id))

    async def drain(self) -> None:
        """実行中のバックグラウンド書き込みの完了を待つ"""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _push_add(self, user_id: str, item: Item) -> None:
        collection = collection_for(item.kind)
        try:
            remote_id = await self._call(self.documents.add, user_id, collection, remote_payload(item))
        except RemoteSyncError as exc:
            self.status.report(exc, "同期に失敗しました（ローカルには保存済みです）")
            return
        if self.user_id != user_id:
            return
        if not self.store.attach_remote_id(item.id, remote_id):
            # リモート書き込み中にローカルで削除された
            await self._push_delete(user_id, collection, remote_id)
            return
        self.status.success("同期しました")

    async def _push_update(self, user_id: str, remote_id: str, fields: Dict[str, Any]) -> None:
        try:
            await self._call(self.documents.update, user_id, TASKS, remote_id, fields)
        except RemoteSyncError as exc:
            self.status.report(exc, "タスクの同期に失敗しました")
            return
        self.status.success("タスクを同期しました")

    async def _push_delete(self, user_id: str, collection: str, remote_id: str) -> None:
        try:
            await self._call(self.documents.delete, user_id, collection, remote_id)
        except RemoteSyncError as exc:
            self.status.report(exc, "クラウドからの削除に失敗しました")

    async def _call(self, func: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except RemoteSyncError:
            raise
        except Exception as exc:
            raise RemoteSyncError(str(exc)) from exc

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _to_local(self, documents: List[RemoteDocument]) -> List[Dict[str, Any]]:
        records = []
        for document in documents:
            record = dict(document.data)
            record["remoteId"] = document.remote_id
            try:
                record["id"] = int(record["id"])
            except (KeyError, TypeError, ValueError):
                record["id"] = self.store.next_id()
            records.append(record)
        return records
