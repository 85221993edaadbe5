"""
RemoteMirror のテスト（インメモリのドキュメントストアを使用）
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from src.daybook.exceptions import RemoteSyncError
from src.daybook.local_store import MemoryKeyValueStore
from src.daybook.models import Draft, ItemKind
from src.daybook.status import StatusBoard
from src.daybook.store import RecordStore
from src.remote_sync import RECORDS, TASKS, InMemoryDocumentStore, RemoteMirror


@pytest.fixture
def status():
    return StatusBoard()


@pytest.fixture
def store(status):
    return RecordStore(MemoryKeyValueStore(), status)


@pytest.fixture
def documents():
    return InMemoryDocumentStore()


def add_and_mirror(store, mirror, kind, text, day="2024-06-05"):
    item_id = store.add(kind, Draft(text=text, date=day))
    mirror.item_added(store.get(item_id))
    return item_id


class TestSignIn:
    def test_sign_in_replaces_local_data(self, store, status, documents):
        """サインインでリモートのスナップショットに置き換わる"""
        documents.add("u1", RECORDS, {"id": 100, "text": "remote note", "date": "2024-06-01", "type": "record"})
        documents.add(
            "u1", TASKS, {"id": 200, "text": "remote task", "date": "2024-06-01", "completed": True, "priority": "high"}
        )
        store.add(ItemKind.TASK, Draft(text="local", date="2024-06-05"))
        mirror = RemoteMirror(store, status, documents)

        replaced = asyncio.run(mirror.on_auth_state_changed("u1"))

        assert replaced is True
        assert [note.text for note in store.notes] == ["remote note"]
        assert store.get(200).completed is True
        assert store.get(200).remote_id == "doc-2"
        assert mirror.signed_in is True
        assert status.busy_labels == []

    def test_documents_without_id_get_local_ids(self, store, status, documents):
        documents.add("u1", RECORDS, {"text": "no id", "date": "2024-06-01"})
        mirror = RemoteMirror(store, status, documents)
        asyncio.run(mirror.on_auth_state_changed("u1"))
        assert store.notes[0].id > 0
        assert store.notes[0].remote_id == "doc-1"

    def test_fetch_failure_keeps_local_data(self, store, status):
        failing = MagicMock()
        failing.list_by_user.side_effect = ConnectionError("offline")
        task_id = store.add(ItemKind.TASK, Draft(text="local", date="2024-06-05"))
        mirror = RemoteMirror(store, status, failing)

        replaced = asyncio.run(mirror.on_auth_state_changed("u1"))

        assert replaced is False
        assert store.get(task_id).text == "local"
        assert isinstance(status.errors()[-1].error, RemoteSyncError)

    def test_sign_out_clears_local_data(self, store, status, documents):
        store.add(ItemKind.NOTE, Draft(text="n", date="2024-06-05"))
        mirror = RemoteMirror(store, status, documents)
        asyncio.run(mirror.on_auth_state_changed(None))
        assert store.notes == ()
        assert mirror.signed_in is False

    def test_ready_times_out_without_store(self, store, status):
        mirror = RemoteMirror(store, status, ready_timeout=0.01)
        with pytest.raises(RemoteSyncError):
            asyncio.run(mirror.ready())

    def test_ready_without_attached_store_raises(self, store, status):
        """接続済みの合図だけでストアが無い場合も RemoteSyncError"""
        mirror = RemoteMirror(store, status, ready_timeout=0.01)
        mirror._ready.set()
        with pytest.raises(RemoteSyncError):
            asyncio.run(mirror.ready())


class TestPushes:
    def test_added_item_gets_remote_id(self, store, status, documents):
        async def scenario():
            mirror = RemoteMirror(store, status, documents)
            await mirror.on_auth_state_changed("u1")
            item_id = add_and_mirror(store, mirror, ItemKind.TASK, "sync me")
            await mirror.drain()
            return item_id

        item_id = asyncio.run(scenario())
        remote_id = store.get(item_id).remote_id
        assert remote_id is not None
        assert documents.get("u1", TASKS, remote_id)["text"] == "sync me"
        assert "remoteId" not in documents.get("u1", TASKS, remote_id)

    def test_remote_failure_keeps_local_task(self, store, status):
        """リモート書き込みに失敗してもローカルの項目は残り、エラーが通知される"""
        failing = MagicMock()
        failing.list_by_user.return_value = []
        failing.add.side_effect = RuntimeError("permission denied")

        async def scenario():
            mirror = RemoteMirror(store, status, failing)
            await mirror.on_auth_state_changed("u1")
            item_id = add_and_mirror(store, mirror, ItemKind.TASK, "offline")
            await mirror.drain()
            return item_id

        item_id = asyncio.run(scenario())
        task = store.get(item_id)
        assert task.text == "offline"
        assert task.remote_id is None
        assert isinstance(status.errors()[-1].error, RemoteSyncError)

    def test_delete_during_add_removes_remote_orphan(self, store, status, documents):
        async def scenario():
            mirror = RemoteMirror(store, status, documents)
            await mirror.on_auth_state_changed("u1")
            item_id = add_and_mirror(store, mirror, ItemKind.NOTE, "short-lived")
            store.remove(item_id)
            await mirror.drain()

        asyncio.run(scenario())
        assert documents.list_by_user("u1", RECORDS) == []

    def test_update_and_delete_are_mirrored(self, store, status, documents):
        async def scenario():
            mirror = RemoteMirror(store, status, documents)
            await mirror.on_auth_state_changed("u1")
            item_id = add_and_mirror(store, mirror, ItemKind.TASK, "task")
            await mirror.drain()

            completed = store.toggle_completed(item_id)
            mirror.item_updated(store.get(item_id), {"completed": completed})
            await mirror.drain()
            remote_id = store.get(item_id).remote_id
            snapshot = documents.get("u1", TASKS, remote_id)

            mirror.item_removed(store.remove(item_id))
            await mirror.drain()
            return snapshot

        snapshot = asyncio.run(scenario())
        assert snapshot["completed"] is True
        assert documents.list_by_user("u1", TASKS) == []

    def test_nothing_is_pushed_when_signed_out(self, store, status):
        documents = MagicMock()

        async def scenario():
            mirror = RemoteMirror(store, status, documents)
            add_and_mirror(store, mirror, ItemKind.NOTE, "local only")
            await mirror.drain()

        asyncio.run(scenario())
        documents.add.assert_not_called()
