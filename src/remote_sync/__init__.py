"""Remote mirror of the local journal.

ローカルの記録とタスクをユーザーごとのリモートドキュメントストアへ
ミラーリングする。
"""

from .documents import RECORDS, TASKS, DocumentStore, InMemoryDocumentStore, RemoteDocument
from .http_store import HttpDocumentStore
from .mirror import RemoteMirror

__all__ = [
    "RECORDS",
    "TASKS",
    "DocumentStore",
    "InMemoryDocumentStore",
    "RemoteDocument",
    "HttpDocumentStore",
    "RemoteMirror",
]
