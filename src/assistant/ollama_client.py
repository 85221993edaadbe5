"""
Ollama APIクライアントモジュール

関連クラス:
  - daybook.config.Config: Ollama設定を提供
  - assistant.ScheduleAssistant: このクライアントを使用

ScheduleAssistant は1つのプロンプトを渡して自由記述のテキストを受け取るだけなので、
complete() はテキストを返す。応答の形式には依存しない。
"""

import logging
from typing import Any, List, Optional, Protocol

import ollama

from src.daybook.exceptions import RemoteSyncError


class CompletionClient(Protocol):
    def complete(self, prompt: str) -> str: ...


class OllamaClient:
    """Ollama APIクライアント"""

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "qwen3:8b",
        temperature: float = 0.7,
        max_tokens: int = 4096,
        client: Optional[Any] = None,
    ):
        """
        初期化

        Args:
            host: OllamaサーバーのURL
            model: 使用するモデル名
            temperature: 生成温度（0.0-1.0）
            max_tokens: 最大トークン数
            client: テスト用に差し替え可能な ollama.Client
        """
        self.host = host
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.logger = logging.getLogger(__name__)

        self.client = client or ollama.Client(host=host)

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
    ) -> str:
        """
        プロンプトから生成

        Args:
            prompt: 入力プロンプト
            system: システムプロンプト

        Returns:
            生成されたテキスト
        """
        try:
            response = self.client.generate(
                model=self.model,
                prompt=prompt,
                system=system,
                stream=False,
                options={
                    "temperature": self.temperature,
                    "num_predict": self.max_tokens,
                },
            )
            return response["response"]
        except Exception as e:
            self.logger.error(f"Ollama generate error: {e}")
            raise

    def complete(self, prompt: str) -> str:
        """プロンプト1つに対する自由記述の応答。失敗は RemoteSyncError。"""
        try:
            content = self.generate(prompt)
        except Exception as e:
            raise RemoteSyncError(f"AI応答の取得に失敗しました: {e}") from e
        if not isinstance(content, str) or not content.strip():
            raise RemoteSyncError("AI応答が空です")
        return content

    def list_models(self) -> List[str]:
        """
        利用可能なモデルのリストを取得

        Returns:
            モデル名のリスト
        """
        try:
            models = self.client.list()
            return [model["model"] for model in models["models"]]
        except Exception as e:
            self.logger.error(f"Failed to list models: {e}")
            return []
