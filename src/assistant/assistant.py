"""
ScheduleAssistant: 現在のノート・タスクを踏まえてAIに予定の相談をする

応答が {"action": "update_preferences", "preferences": {...}} として読めれば
個人設定を更新し、それ以外の応答はそのまま表示する。失敗時は再試行せず、
代わりのメッセージを返す。
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from src.daybook.exceptions import RemoteSyncError
from src.daybook.models import Snapshot
from src.daybook.status import StatusBoard

from .ollama_client import CompletionClient
from .preferences import PreferencesRepository
from .prompts import build_prompt

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "申し訳ありません、AIアシスタントが応答できませんでした。ネットワーク接続を確認するか、しばらくしてから再度お試しください。"
PREFERENCES_UPDATED_MESSAGE = "個人設定を更新しました！"


@dataclass(frozen=True, slots=True)
class ChatReply:
    text: str
    preferences_updated: bool = False
    failed: bool = False


def parse_envelope(response: str) -> Optional[Dict[str, Any]]:
    """応答が設定更新のJSONであれば preferences を返す"""
    text = response.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.startswith("json"):
            text = text[4:]
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict) or data.get("action") != "update_preferences":
        return None
    preferences = data.get("preferences")
    return preferences if isinstance(preferences, dict) and preferences else None


class ScheduleAssistant:
    """AIチャット。会話履歴はメモリ上にのみ保持する。"""

    def __init__(
        self,
        client: CompletionClient,
        preferences: PreferencesRepository,
        snapshot: Callable[[], Snapshot],
        status: Optional[StatusBoard] = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.client = client
        self.preferences = preferences
        self._snapshot = snapshot
        self.status = status or StatusBoard()
        self._now = now
        self.history: List[Dict[str, str]] = []

    async def send(self, message: str) -> ChatReply:
        message = message.strip()
        if not message:
            raise ValueError("メッセージが空です")

        self.history.append({"role": "user", "content": message})
        prompt = build_prompt(message, self._snapshot(), self.preferences.current, self._now())

        with self.status.busy("ai"):
            try:
                response = await asyncio.to_thread(self.client.complete, prompt)
            except RemoteSyncError as exc:
                return self._fail(exc)
            except Exception as exc:
                logger.exception("Unexpected AI client failure")
                return self._fail(RemoteSyncError(str(exc)))

        reply = self._handle_response(response)
        self.history.append({"role": "assistant", "content": reply.text})
        return reply

    def _handle_response(self, response: str) -> ChatReply:
        changes = parse_envelope(response)
        if changes is None:
            return ChatReply(text=response)
        try:
            self.preferences.update(changes)
        except ValidationError as exc:
            logger.warning("Ignoring invalid preference update: %s", exc)
            return ChatReply(text=response)
        logger.info("Preferences updated: %s", sorted(changes))
        return ChatReply(text=PREFERENCES_UPDATED_MESSAGE, preferences_updated=True)

    def _fail(self, error: RemoteSyncError) -> ChatReply:
        self.status.report(error, "AIアシスタントに接続できませんでした")
        self.history.append({"role": "assistant", "content": FALLBACK_MESSAGE})
        return ChatReply(text=FALLBACK_MESSAGE, failed=True)
