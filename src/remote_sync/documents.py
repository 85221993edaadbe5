"""リモートのドキュメントストアのインターフェースとインメモリ実装

ユーザーごとに `records`（ノート）と `tasks` の2つのサブコレクションを持つ。
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

from src.daybook.models import ItemKind

RECORDS = "records"
TASKS = "tasks"


def collection_for(kind: ItemKind) -> str:
    return TASKS if kind is ItemKind.TASK else RECORDS


@dataclass(frozen=True, slots=True)
class RemoteDocument:
    remote_id: str
    data: Dict[str, Any] = field(default_factory=dict)


class DocumentStore(Protocol):
    def list_by_user(self, user_id: str, collection: str) -> List[RemoteDocument]: ...

    def add(self, user_id: str, collection: str, data: Dict[str, Any]) -> str: ...

    def update(self, user_id: str, collection: str, remote_id: str, data: Dict[str, Any]) -> None: ...

    def delete(self, user_id: str, collection: str, remote_id: str) -> None: ...


class InMemoryDocumentStore:
    """プロセス内のドキュメントストア。追加順で返す。"""

    def __init__(self) -> None:
        self._documents: Dict[tuple, Dict[str, Dict[str, Any]]] = {}
        self._counter = itertools.count(1)

    def list_by_user(self, user_id: str, collection: str) -> List[RemoteDocument]:
        bucket = self._documents.get((user_id, collection), {})
        return [RemoteDocument(remote_id, dict(data)) for remote_id, data in bucket.items()]

    def add(self, user_id: str, collection: str, data: Dict[str, Any]) -> str:
        remote_id = f"doc-{next(self._counter)}"
        self._documents.setdefault((user_id, collection), {})[remote_id] = dict(data)
        return remote_id

    def update(self, user_id: str, collection: str, remote_id: str, data: Dict[str, Any]) -> None:
        bucket = self._documents.get((user_id, collection), {})
        if remote_id not in bucket:
            raise KeyError(f"{collection}/{remote_id} not found")
        bucket[remote_id].update(data)

    def delete(self, user_id: str, collection: str, remote_id: str) -> None:
        self._documents.get((user_id, collection), {}).pop(remote_id, None)

    def get(self, user_id: str, collection: str, remote_id: str) -> Dict[str, Any]:
        return dict(self._documents[(user_id, collection)][remote_id])
