"""
Daybook コンテキストの統合テスト（キュー・ミラー・表示の連携）
"""

import asyncio
from datetime import date, datetime
from unittest.mock import MagicMock

import pytest

from src.daybook.config import Config
from src.daybook.context import Daybook
from src.daybook.local_store import MemoryKeyValueStore
from src.daybook.view_sync import Region
from src.remote_sync import RECORDS, TASKS, InMemoryDocumentStore


@pytest.fixture
def documents():
    store = InMemoryDocumentStore()
    store.add("u1", TASKS, {"id": 1, "text": "remote task", "date": "2024-06-05", "completed": False})
    return store


def build(documents=None):
    daybook = Daybook.build(
        Config(),
        storage=MemoryKeyValueStore(),
        documents=documents,
        completion=MagicMock(),
        today=lambda: date(2024, 6, 5),
        now=lambda: datetime(2024, 6, 5, 12, 0, 0),
    )
    daybook.start()
    return daybook


def test_add_after_sign_in_is_not_overwritten(documents):
    """サインイン直後に投入した追加は、置き換えの後に適用される"""

    async def scenario():
        daybook = build(documents)
        results = await asyncio.gather(
            daybook.sign_in("u1"),
            daybook.add_task("local task", "2024-06-05"),
        )
        await daybook.close()
        return daybook, results

    daybook, (replaced, task_id) = asyncio.run(scenario())
    assert replaced is True
    assert [task.text for task in daybook.store.tasks] == ["remote task", "local task"]
    assert daybook.store.get(task_id).remote_id is not None
    assert len(documents.list_by_user("u1", TASKS)) == 2


def test_daily_panel_follows_mutations():
    async def scenario():
        daybook = build()
        await daybook.add_note("日記", "2024-06-05")
        task_id = await daybook.add_task("散歩", "2024-06-05", "low")
        await daybook.toggle_task(task_id)
        return daybook

    daybook = asyncio.run(scenario())
    panel = daybook.views.latest[Region.DAILY_PANEL]
    assert [item.text for item in panel.items] == ["日記", "散歩"]
    assert daybook.views.latest[Region.DAILY_PROGRESS].percent == 100
    assert "day:2024-06-05" in daybook.views.celebrated


def test_remove_is_mirrored(documents):
    async def scenario():
        daybook = build(documents)
        await daybook.sign_in("u1")
        note_id = await daybook.add_note("消す記録", "2024-06-05")
        await daybook.close()
        await daybook.remove(note_id)
        await daybook.close()
        return daybook

    daybook = asyncio.run(scenario())
    assert daybook.store.notes == ()
    assert documents.list_by_user("u1", RECORDS) == []


def test_sign_out_clears_everything(documents):
    async def scenario():
        daybook = build(documents)
        await daybook.sign_in("u1")
        await daybook.sign_out()
        return daybook

    daybook = asyncio.run(scenario())
    assert daybook.store.tasks == ()
    assert daybook.mirror.signed_in is False


def test_chat_without_network_falls_back():
    async def scenario():
        daybook = build()
        daybook.assistant.client.complete.side_effect = ConnectionError("offline")
        return await daybook.chat("予定を教えて")

    reply = asyncio.run(scenario())
    assert reply.failed is True
