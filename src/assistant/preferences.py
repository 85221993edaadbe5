"""ユーザーの個人設定（AIアシスタントがプロンプト作成に使う）"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.daybook.exceptions import PersistenceError
from src.daybook.local_store import PREFERENCES_KEY, KeyValueStore

logger = logging.getLogger(__name__)


class UserPreferences(BaseModel):
    """個人設定。保存形式は camelCase のキー。"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    work_style: str = Field(default="balanced", alias="workStyle")
    preferred_time: str = Field(default="morning", alias="preferredTime")
    communication_style: str = Field(default="friendly", alias="communicationStyle")
    reminder_frequency: str = Field(default="moderate", alias="reminderFrequency")
    goal_focus: str = Field(default="productivity", alias="goalFocus")


class PreferencesRepository:
    """個人設定をローカルストアへ読み書きする"""

    def __init__(self, storage: KeyValueStore):
        self.storage = storage
        self.current = self.load()

    def load(self) -> UserPreferences:
        try:
            raw = self.storage.get(PREFERENCES_KEY)
            if not raw:
                return UserPreferences()
            return UserPreferences.model_validate(json.loads(raw))
        except (PersistenceError, json.JSONDecodeError, ValidationError) as exc:
            logger.error("Failed to load preferences, using defaults: %s", exc)
            return UserPreferences()

    def save(self) -> None:
        payload = self.current.model_dump(by_alias=True)
        self.storage.set(PREFERENCES_KEY, json.dumps(payload, ensure_ascii=False))

    def update(self, changes: Dict[str, Any]) -> UserPreferences:
        """既存の設定に浅くマージして保存する"""
        aliases = {name: info.alias or name for name, info in UserPreferences.model_fields.items()}
        normalized = {aliases.get(key, key): value for key, value in changes.items()}
        merged = {**self.current.model_dump(by_alias=True), **normalized}
        self.current = UserPreferences.model_validate(merged)
        try:
            self.save()
        except PersistenceError as exc:
            logger.error("Failed to save preferences: %s", exc)
        return self.current
