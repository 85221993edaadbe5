"""Daybook: notes and dated tasks with calendar views.

ノートとタスクの管理、月間・日間の集計、表示領域の同期を提供します。
"""

from .exceptions import (
    DaybookError,
    NotFoundError,
    PersistenceError,
    RemoteSyncError,
    ValidationError,
    WrongKindError,
)
from .models import Draft, ItemKind, Note, Priority, Snapshot, Task
from .store import MutationScope, RecordStore
from .view_sync import Region, ViewSync

__all__ = [
    "DaybookError",
    "NotFoundError",
    "PersistenceError",
    "RemoteSyncError",
    "ValidationError",
    "WrongKindError",
    "Draft",
    "ItemKind",
    "Note",
    "Priority",
    "Snapshot",
    "Task",
    "MutationScope",
    "RecordStore",
    "Region",
    "ViewSync",
]
