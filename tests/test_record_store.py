"""
RecordStore のCRUD・永続化・通知のテスト
"""

import json
from datetime import datetime

import pytest

from src.daybook import aggregator
from src.daybook.exceptions import NotFoundError, PersistenceError, ValidationError, WrongKindError
from src.daybook.local_store import NOTES_KEY, TASKS_KEY, MemoryKeyValueStore, SQLiteKeyValueStore
from src.daybook.models import Draft, ItemKind, Note, Priority, Task
from src.daybook.status import StatusBoard
from src.daybook.store import IdGenerator, MutationScope, RecordStore


class FailingStore(MemoryKeyValueStore):
    def set(self, key, value):
        raise PersistenceError("disk full")


@pytest.fixture
def storage():
    return MemoryKeyValueStore()


@pytest.fixture
def store(storage):
    clock = iter(range(1_000, 100_000))
    ids = IdGenerator(clock=lambda: next(clock) / 1000)
    return RecordStore(storage, now=lambda: datetime(2024, 6, 5, 9, 30, 0), ids=ids)


class TestAdd:
    def test_add_task_persists_and_notifies(self, store, storage):
        """追加した内容が保存され、日付付きのスコープで通知される"""
        scopes = []
        store.subscribe(scopes.append)

        item_id = store.add(ItemKind.TASK, Draft(text=" 牛乳を買う ", date="2024-06-05"))

        task = store.get(item_id)
        assert isinstance(task, Task)
        assert task.text == "牛乳を買う"
        assert task.priority is Priority.MEDIUM
        assert task.completed is False
        assert task.created_at == "09:30:00"
        assert json.loads(storage.data[TASKS_KEY])[0]["id"] == item_id
        assert scopes == [MutationScope(frozenset({"2024-06-05"}))]

    def test_empty_text_changes_nothing(self, store, storage):
        """空のテキストは ValidationError で、状態も保存も変わらない"""
        scopes = []
        store.subscribe(scopes.append)

        with pytest.raises(ValidationError):
            store.add(ItemKind.NOTE, Draft(text="   ", date="2024-06-05"))

        assert store.notes == ()
        assert storage.writes == 0
        assert scopes == []

    def test_invalid_priority_rejected(self, store):
        with pytest.raises(ValidationError):
            store.add("task", Draft(text="x", date="2024-06-05", priority="urgent"))
        assert store.tasks == ()

    def test_ids_are_unique_across_kinds(self, store):
        note_id = store.add(ItemKind.NOTE, Draft(text="a", date="2024-06-05"))
        task_id = store.add(ItemKind.TASK, Draft(text="b", date="2024-06-05"))
        assert task_id > note_id

    def test_ids_are_not_reused_after_delete(self, store):
        first = store.add(ItemKind.TASK, Draft(text="a", date="2024-06-05"))
        store.remove(first)
        second = store.add(ItemKind.TASK, Draft(text="b", date="2024-06-05"))
        assert second > first


class TestIdGenerator:
    def test_same_millisecond_still_increases(self):
        ids = IdGenerator(clock=lambda: 1.0)
        assert [ids.next(), ids.next(), ids.next()] == [1000, 1001, 1002]

    def test_seed_moves_past_existing_ids(self):
        ids = IdGenerator(clock=lambda: 1.0)
        ids.seed([5000])
        assert ids.next() == 5001


class TestUpdateToggleRemove:
    def test_update_replaces_only_given_fields(self, store):
        item_id = store.add(ItemKind.TASK, Draft(text="a", date="2024-06-05", priority="low"))
        updated = store.update(item_id, priority="high")
        assert updated.text == "a"
        assert updated.priority is Priority.HIGH
        assert updated.created_at == "09:30:00"

    def test_moving_date_touches_both_days(self, store):
        item_id = store.add(ItemKind.TASK, Draft(text="a", date="2024-06-05"))
        scopes = []
        store.subscribe(scopes.append)
        store.update(item_id, date="2024-06-07")
        assert scopes[-1].dates == frozenset({"2024-06-05", "2024-06-07"})

    def test_update_note_is_wrong_kind(self, store):
        note_id = store.add(ItemKind.NOTE, Draft(text="n", date="2024-06-05"))
        with pytest.raises(WrongKindError):
            store.update(note_id, text="x")
        with pytest.raises(WrongKindError):
            store.toggle_completed(note_id)

    def test_missing_id_is_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.remove(42)
        with pytest.raises(NotFoundError):
            store.toggle_completed(42)

    def test_toggle_twice_restores_state(self, store):
        item_id = store.add(ItemKind.TASK, Draft(text="a", date="2024-06-05"))
        assert store.toggle_completed(item_id) is True
        assert store.toggle_completed(item_id) is False
        assert store.get(item_id).completed is False

    def test_remove_returns_item(self, store):
        note_id = store.add(ItemKind.NOTE, Draft(text="n", date="2024-06-05"))
        removed = store.remove(note_id)
        assert isinstance(removed, Note)
        assert store.notes == ()


class TestPersistence:
    def test_persist_then_load_round_trip(self, tmp_path):
        """SQLiteへ保存した内容が別インスタンスで復元される"""
        db_path = tmp_path / "daybook.db"
        first = RecordStore(SQLiteKeyValueStore(db_path))
        note_id = first.add(ItemKind.NOTE, Draft(text="晴れ", date="2024-06-05"))
        task_id = first.add(ItemKind.TASK, Draft(text="散歩", date="2024-06-05", priority="high"))
        first.toggle_completed(task_id)

        second = RecordStore(SQLiteKeyValueStore(db_path))
        second.load()
        assert second.snapshot() == first.snapshot()
        assert second.get(note_id).text == "晴れ"

        # 読み込み後の新しいIDは既存IDより大きい
        assert second.next_id() > task_id

    def test_corrupt_data_loads_empty(self):
        storage = MemoryKeyValueStore({NOTES_KEY: "{not json", TASKS_KEY: json.dumps({"a": 1})})
        store = RecordStore(storage)
        store.load()
        assert store.notes == ()
        assert store.tasks == ()

    def test_malformed_entries_are_skipped(self):
        tasks = [
            {"id": 1, "text": "ok", "date": "2024-06-05", "completed": False},
            {"id": 2, "text": "bad", "date": "2024-06-05", "completed": "no"},
            "garbage",
        ]
        store = RecordStore(MemoryKeyValueStore({TASKS_KEY: json.dumps(tasks)}))
        store.load()
        assert [task.id for task in store.tasks] == [1]

    def test_write_failure_is_reported_not_raised(self):
        """保存に失敗してもメモリ上の状態は更新され、エラーが通知される"""
        status = StatusBoard()
        store = RecordStore(FailingStore(), status)
        item_id = store.add(ItemKind.TASK, Draft(text="a", date="2024-06-05"))
        assert store.get(item_id).text == "a"
        assert isinstance(status.errors()[0].error, PersistenceError)

    def test_persist_raises_on_failure(self):
        store = RecordStore(FailingStore())
        with pytest.raises(PersistenceError):
            store.persist()


class TestReplaceAll:
    def test_replace_with_empty_persists_empty(self, store, storage):
        store.add(ItemKind.TASK, Draft(text="a", date="2024-06-05"))
        scopes = []
        store.subscribe(scopes.append)

        store.replace_all([], [])

        assert store.snapshot().tasks == ()
        assert json.loads(storage.data[NOTES_KEY]) == []
        assert json.loads(storage.data[TASKS_KEY]) == []
        assert scopes == [MutationScope(full=True)]

    def test_replace_accepts_records(self, store):
        store.replace_all(
            [{"id": 10, "text": "n", "date": "2024-06-01", "remoteId": "r1"}],
            [{"id": 11, "text": "t", "date": "2024-06-01", "completed": True}, {"broken": True}],
        )
        assert store.get(10).remote_id == "r1"
        assert store.get(11).completed is True
        assert len(store.tasks) == 1

    def test_attach_remote_id(self, store):
        item_id = store.add(ItemKind.NOTE, Draft(text="n", date="2024-06-05"))
        assert store.attach_remote_id(item_id, "doc-1") is True
        assert store.get(item_id).remote_id == "doc-1"
        assert store.attach_remote_id(999, "doc-2") is False


class TestScenarios:
    def test_write_report_completes_day_and_month(self, store):
        """高優先度タスクを追加して完了すると、その日と6月の完了日が1になる"""
        task_id = store.add(ItemKind.TASK, Draft(text="write report", date="2024-06-05", priority="high"))
        store.toggle_completed(task_id)

        snapshot = store.snapshot()
        assert aggregator.day_stats(snapshot, "2024-06-05") == aggregator.DayStats(1, 1, 100)
        assert aggregator.month_stats(snapshot, 2024, 6).days_fully_completed == 1

    def test_replace_after_five_notes_and_three_tasks(self, store, storage):
        for index in range(5):
            store.add(ItemKind.NOTE, Draft(text=f"note {index}", date="2024-06-05"))
        for index in range(3):
            store.add(ItemKind.TASK, Draft(text=f"task {index}", date="2024-06-06"))

        store.replace_all([], [])

        assert store.snapshot().notes == ()
        assert store.snapshot().tasks == ()
        reloaded = RecordStore(storage)
        reloaded.load()
        assert reloaded.snapshot() == store.snapshot()

    def test_every_operation_round_trips(self, store, storage):
        """各操作の後、保存内容を読み直すと同じコレクションになる"""

        def reloaded():
            copy = RecordStore(storage)
            copy.load()
            return copy.snapshot()

        first = store.add(ItemKind.TASK, Draft(text="a", date="2024-06-05", priority="low"))
        assert reloaded() == store.snapshot()
        store.add(ItemKind.NOTE, Draft(text="b", date="2024-06-05"))
        assert reloaded() == store.snapshot()
        second = store.add(ItemKind.TASK, Draft(text="c", date="2024-06-06"))
        assert reloaded() == store.snapshot()
        store.update(first, text="a2", date="2024-06-07")
        assert reloaded() == store.snapshot()
        store.toggle_completed(second)
        assert reloaded() == store.snapshot()
        store.remove(first)
        assert reloaded() == store.snapshot()

    def test_toggle_twice_restores_position(self, store):
        ids = [store.add(ItemKind.TASK, Draft(text=str(n), date="2024-06-05")) for n in range(3)]
        store.add(ItemKind.NOTE, Draft(text="note", date="2024-06-05"))
        before = [item.id for item in aggregator.items_on_day(store.snapshot(), "2024-06-05")]

        store.toggle_completed(ids[1])
        store.toggle_completed(ids[1])

        after = [item.id for item in aggregator.items_on_day(store.snapshot(), "2024-06-05")]
        assert after == before
