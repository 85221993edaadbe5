"""RecordStore: ノートとタスクの2つのコレクションを管理する

ローカルストアが UI にとっての正であり、変更は同期的に永続化される。
変更のたびに購読者へ MutationScope（影響を受けた日付）を通知する。

Related Classes: ViewSync (view_sync.py), RemoteMirror (src/remote_sync/mirror.py)
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from .exceptions import NotFoundError, PersistenceError, WrongKindError
from .local_store import NOTES_KEY, TASKS_KEY, KeyValueStore
from .models import (
    Draft,
    Item,
    ItemKind,
    Note,
    Snapshot,
    Task,
    normalize_date,
    normalize_priority,
    normalize_text,
    note_from_record,
    task_from_record,
    to_record,
)
from .status import StatusBoard

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MutationScope:
    """変更の影響範囲。full=True は全体の置き換え。"""

    dates: FrozenSet[str] = frozenset()
    full: bool = False

    @property
    def months(self) -> FrozenSet[Tuple[int, int]]:
        return frozenset((int(d[:4]), int(d[5:7])) for d in self.dates)

    def touches(self, day: str) -> bool:
        return self.full or day in self.dates


Observer = Callable[[MutationScope], None]


class IdGenerator:
    """作成時刻(ms)に基づく単調増加ID。削除後も再利用しない。"""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0

    def seed(self, ids: Iterable[int]) -> None:
        for item_id in ids:
            self._last = max(self._last, item_id)

    def next(self) -> int:
        candidate = int(self._clock() * 1000)
        self._last = max(candidate, self._last + 1)
        return self._last


class RecordStore:
    """ノート・タスクのCRUDと永続化"""

    def __init__(
        self,
        storage: KeyValueStore,
        status: Optional[StatusBoard] = None,
        *,
        now: Callable[[], datetime] = datetime.now,
        ids: Optional[IdGenerator] = None,
    ):
        self.storage = storage
        self.status = status or StatusBoard()
        self._now = now
        self._ids = ids or IdGenerator()
        self._notes: List[Note] = []
        self._tasks: List[Task] = []
        self._observers: List[Observer] = []

    # ---- 読み取り ----

    @property
    def notes(self) -> Tuple[Note, ...]:
        return tuple(self._notes)

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(self._tasks)

    def snapshot(self) -> Snapshot:
        return Snapshot(notes=tuple(self._notes), tasks=tuple(self._tasks))

    def get(self, item_id: int) -> Item:
        kind, index = self._locate(item_id)
        return self._notes[index] if kind is ItemKind.NOTE else self._tasks[index]

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    # ---- 変更操作 ----

    def add(self, kind: Union[ItemKind, str], draft: Draft) -> int:
        """項目を追加してIDを返す。検証失敗時は状態も永続化も変えない。"""
        kind = ItemKind(kind)
        text = normalize_text(draft.text)
        day = normalize_date(draft.date)
        created_at = self._now().strftime("%H:%M:%S")

        if kind is ItemKind.TASK:
            priority = normalize_priority(draft.priority)
            item_id = self._ids.next()
            self._tasks.append(
                Task(id=item_id, text=text, date=day, created_at=created_at, priority=priority)
            )
        else:
            item_id = self._ids.next()
            self._notes.append(Note(id=item_id, text=text, date=day, created_at=created_at))

        logger.info("Added %s %s on %s", kind.value, item_id, day)
        self._commit(MutationScope(frozenset({day})), kind)
        return item_id

    def update(
        self,
        item_id: int,
        *,
        text: Optional[str] = None,
        date: Any = None,
        priority: Any = None,
    ) -> Task:
        """タスクの text/date/priority のうち指定されたものだけを置き換える"""
        index = self._task_index(item_id)
        current = self._tasks[index]

        changes: Dict[str, Any] = {}
        if text is not None:
            changes["text"] = normalize_text(text)
        if date is not None:
            changes["date"] = normalize_date(date)
        if priority is not None:
            changes["priority"] = normalize_priority(priority)

        updated = replace(current, **changes)
        self._tasks[index] = updated
        self._commit(MutationScope(frozenset({current.date, updated.date})), ItemKind.TASK)
        return updated

    def remove(self, item_id: int) -> Item:
        kind, index = self._locate(item_id)
        if kind is ItemKind.NOTE:
            removed: Item = self._notes.pop(index)
        else:
            removed = self._tasks.pop(index)
        logger.info("Removed %s %s", kind.value, item_id)
        self._commit(MutationScope(frozenset({removed.date})), kind)
        return removed

    def toggle_completed(self, item_id: int) -> bool:
        index = self._task_index(item_id)
        current = self._tasks[index]
        self._tasks[index] = replace(current, completed=not current.completed)
        self._commit(MutationScope(frozenset({current.date})), ItemKind.TASK)
        return not current.completed

    def replace_all(self, notes: Iterable[Any], tasks: Iterable[Any]) -> None:
        """リモート取得後の全置き換え。形の不正な要素は読み飛ばす。"""
        new_notes = self._coerce(notes, Note, note_from_record)
        new_tasks = self._coerce(tasks, Task, task_from_record)
        self._notes = new_notes
        self._tasks = new_tasks
        self._ids.seed(item.id for item in [*new_notes, *new_tasks])
        logger.info("Replaced collections: %d notes, %d tasks", len(new_notes), len(new_tasks))
        self._commit(MutationScope(full=True), None)

    def attach_remote_id(self, item_id: int, remote_id: str) -> bool:
        """リモート保存に成功した項目へ remote_id を記録する"""
        try:
            kind, index = self._locate(item_id)
        except NotFoundError:
            return False
        if kind is ItemKind.NOTE:
            self._notes[index] = replace(self._notes[index], remote_id=remote_id)
        else:
            self._tasks[index] = replace(self._tasks[index], remote_id=remote_id)
        self._write_safely(kind)
        return True

    def next_id(self) -> int:
        return self._ids.next()

    # ---- 永続化 ----

    def persist(self) -> None:
        """両コレクションを書き込む。失敗時は PersistenceError。"""
        self._write(ItemKind.NOTE)
        self._write(ItemKind.TASK)

    def load(self) -> None:
        """ローカルストアから復元する。壊れたデータは空として扱う。"""
        self._notes = self._read(NOTES_KEY, note_from_record)
        self._tasks = self._read(TASKS_KEY, task_from_record)
        self._ids.seed(item.id for item in [*self._notes, *self._tasks])
        self._notify(MutationScope(full=True))

    # ---- 内部処理 ----

    def _locate(self, item_id: int) -> Tuple[ItemKind, int]:
        for index, task in enumerate(self._tasks):
            if task.id == item_id:
                return ItemKind.TASK, index
        for index, note in enumerate(self._notes):
            if note.id == item_id:
                return ItemKind.NOTE, index
        raise NotFoundError(item_id)

    def _task_index(self, item_id: int) -> int:
        kind, index = self._locate(item_id)
        if kind is not ItemKind.TASK:
            raise WrongKindError(item_id, expected="task")
        return index

    def _commit(self, scope: MutationScope, kind: Optional[ItemKind]) -> None:
        if kind is None:
            self._write_safely(ItemKind.NOTE)
            self._write_safely(ItemKind.TASK)
        else:
            self._write_safely(kind)
        self._notify(scope)

    def _write(self, kind: ItemKind) -> None:
        if kind is ItemKind.NOTE:
            payload = [to_record(note) for note in self._notes]
            self.storage.set(NOTES_KEY, json.dumps(payload, ensure_ascii=False))
        else:
            payload = [to_record(task) for task in self._tasks]
            self.storage.set(TASKS_KEY, json.dumps(payload, ensure_ascii=False))

    def _write_safely(self, kind: ItemKind) -> None:
        try:
            self._write(kind)
        except PersistenceError as exc:
            logger.error("Failed to persist %s: %s", kind.value, exc)
            self.status.report(exc, "保存に失敗しました（このセッション中は表示中のデータが有効です）")
        except Exception as exc:
            logger.exception("Unexpected storage failure for %s", kind.value)
            self.status.report(PersistenceError(str(exc)), "保存に失敗しました")

    def _read(self, key: str, decode: Callable[[Dict[str, Any]], Any]) -> list:
        try:
            raw = self.storage.get(key)
        except PersistenceError as exc:
            logger.error("Failed to read %s: %s", key, exc)
            self.status.report(exc, "データの読み込みに失敗しました")
            return []
        if not raw:
            return []
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Corrupt data under %s, starting empty: %s", key, exc)
            return []
        if not isinstance(payload, list):
            logger.warning("Unexpected data under %s (%s), starting empty", key, type(payload).__name__)
            return []
        return self._decode_records(payload, decode, key)

    def _coerce(self, items: Iterable[Any], model: type, decode: Callable[[Dict[str, Any]], Any]) -> list:
        coerced = []
        for item in items:
            if isinstance(item, model):
                coerced.append(item)
                continue
            decoded = self._decode_one(item, decode, "snapshot")
            if decoded is not None:
                coerced.append(decoded)
        return coerced

    def _decode_records(self, payload: list, decode: Callable, source: str) -> list:
        items = []
        for record in payload:
            decoded = self._decode_one(record, decode, source)
            if decoded is not None:
                items.append(decoded)
        return items

    @staticmethod
    def _decode_one(record: Any, decode: Callable, source: str) -> Any:
        if not isinstance(record, dict):
            logger.warning("Skipping malformed entry in %s: %r", source, record)
            return None
        try:
            return decode(record)
        except (KeyError, ValueError, TypeError) as exc:
            logger.warning("Skipping malformed entry in %s: %s", source, exc)
            return None

    def _notify(self, scope: MutationScope) -> None:
        for observer in list(self._observers):
            try:
                observer(scope)
            except Exception:
                logger.exception("Store observer failed")
