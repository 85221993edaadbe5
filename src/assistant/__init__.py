"""AI schedule assistant.

ノートとタスクを踏まえた予定相談と、個人設定の管理を提供します。
"""

from .assistant import ChatReply, ScheduleAssistant
from .ollama_client import CompletionClient, OllamaClient
from .preferences import PreferencesRepository, UserPreferences

__all__ = [
    "ChatReply",
    "ScheduleAssistant",
    "CompletionClient",
    "OllamaClient",
    "PreferencesRepository",
    "UserPreferences",
]
