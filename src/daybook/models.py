"""Daybookのデータモデル定義

ノート（記録）とタスクの表現、および永続化形式との相互変換。

Related Classes: RecordStore (store.py), Aggregator (aggregator.py)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date as date_type
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from .exceptions import ValidationError


class ItemKind(str, Enum):
    """項目の種別。値は永続化形式の `type` フィールドと一致する。"""

    NOTE = "record"
    TASK = "task"


class Priority(str, Enum):
    """タスクの優先度"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class Note:
    """日付付きの自由記述。削除以外で変化しない。"""

    id: int
    text: str
    date: str  # YYYY-MM-DD
    created_at: str  # HH:MM:SS（ローカル時刻）
    remote_id: Optional[str] = None

    @property
    def kind(self) -> ItemKind:
        return ItemKind.NOTE


@dataclass(frozen=True, slots=True)
class Task:
    """日付・優先度付きの完了可能な項目"""

    id: int
    text: str
    date: str
    created_at: str
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    remote_id: Optional[str] = None

    @property
    def kind(self) -> ItemKind:
        return ItemKind.TASK


Item = Union[Note, Task]


@dataclass(frozen=True, slots=True)
class Draft:
    """add() に渡す入力。priority はタスクのみ使用。"""

    text: str
    date: Union[str, date_type]
    priority: Union[str, Priority, None] = None


@dataclass(frozen=True, slots=True)
class Snapshot:
    """ある時点の (notes, tasks) の組"""

    notes: Tuple[Note, ...] = ()
    tasks: Tuple[Task, ...] = ()

    def notes_on(self, day: str) -> list[Note]:
        return [note for note in self.notes if note.date == day]

    def tasks_on(self, day: str) -> list[Task]:
        return [task for task in self.tasks if task.date == day]


def normalize_text(value: Any) -> str:
    """前後の空白を除去し、空なら ValidationError"""
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError("テキストを入力してください", field="text")
    return text


def normalize_date(value: Any) -> str:
    """書き込み時に一度だけ YYYY-MM-DD へ正規化する"""
    if isinstance(value, date_type):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, str):
        try:
            return date_type.fromisoformat(value.strip()).strftime("%Y-%m-%d")
        except ValueError:
            pass
    raise ValidationError(f"不正な日付です: {value!r}", field="date")


def normalize_priority(value: Any) -> Priority:
    if value is None:
        return Priority.MEDIUM
    try:
        return Priority(value)
    except ValueError:
        raise ValidationError(f"不正な優先度です: {value!r}", field="priority")


def to_record(item: Item) -> Dict[str, Any]:
    """永続化形式（localStorage互換のキー名）へ変換"""
    record: Dict[str, Any] = {
        "id": item.id,
        "text": item.text,
        "date": item.date,
        "createdAt": item.created_at,
        "type": item.kind.value,
    }
    if isinstance(item, Task):
        record["priority"] = item.priority.value
        record["completed"] = item.completed
    if item.remote_id is not None:
        record["remoteId"] = item.remote_id
    return record


def note_from_record(record: Dict[str, Any]) -> Note:
    """永続化形式からノートを復元。形が不正なら ValueError/KeyError/TypeError。"""
    return Note(
        id=int(record["id"]),
        text=str(record["text"]),
        date=_stored_date(record["date"]),
        created_at=str(record.get("createdAt", "")),
        remote_id=_optional_str(record.get("remoteId")),
    )


def task_from_record(record: Dict[str, Any]) -> Task:
    completed = record.get("completed", False)
    if not isinstance(completed, bool):
        raise TypeError(f"completed must be bool, got {type(completed).__name__}")
    return Task(
        id=int(record["id"]),
        text=str(record["text"]),
        date=_stored_date(record["date"]),
        created_at=str(record.get("createdAt", "")),
        priority=Priority(record.get("priority", Priority.MEDIUM.value)),
        completed=completed,
        remote_id=_optional_str(record.get("remoteId")),
    )


def _stored_date(value: Any) -> str:
    try:
        return normalize_date(value)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
