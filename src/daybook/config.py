"""
設定管理モジュール

関連クラス:
  - context.Daybook: この設定から各コンポーネントを組み立てる
  - assistant.OllamaClient: Ollama API設定を使用
  - remote_sync.HttpDocumentStore: リモートストア設定を使用
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class OllamaConfig:
    """Ollama API設定"""

    host: str = "http://localhost:11434"
    model: str = "qwen3:8b"
    temperature: float = 0.7
    max_tokens: int = 4096


@dataclass
class RemoteConfig:
    """リモートドキュメントストア設定（base_url未設定ならミラーリング無効）"""

    base_url: Optional[str] = None
    timeout_seconds: float = 10.0
    token: Optional[str] = None


@dataclass
class Config:
    """アプリケーション設定クラス"""

    ollama: OllamaConfig = None  # type: ignore
    remote: RemoteConfig = None  # type: ignore

    # ストレージ設定
    db_path: Optional[str] = None

    # ログ設定
    log_level: str = "INFO"
    log_file: str = "logs/daybook.log"

    def __post_init__(self):
        """デフォルト値の初期化"""
        if self.ollama is None:
            self.ollama = OllamaConfig()
        if self.remote is None:
            self.remote = RemoteConfig()

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "Config":
        """YAMLファイルから設定を読み込む

        Args:
            config_path: 設定ファイルパス（省略時はconfig/app_config.yamlを使用）

        Returns:
            Config: 設定インスタンス
        """
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "app_config.yaml"

        if not Path(config_path).exists():
            return cls.from_env()

        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data: Dict[str, Any] = yaml.safe_load(f) or {}

        ollama_data = yaml_data.get("ollama", {})
        remote_data = yaml_data.get("remote", {})
        storage_data = yaml_data.get("storage", {})
        log_data = yaml_data.get("log", {})

        return cls(
            ollama=OllamaConfig(
                host=ollama_data.get("host", "http://localhost:11434"),
                model=ollama_data.get("model", "qwen3:8b"),
                temperature=ollama_data.get("temperature", 0.7),
                max_tokens=ollama_data.get("max_tokens", 4096),
            ),
            remote=RemoteConfig(
                base_url=remote_data.get("base_url"),
                timeout_seconds=remote_data.get("timeout_seconds", 10.0),
                token=remote_data.get("token"),
            ),
            db_path=storage_data.get("db_path"),
            log_level=log_data.get("level", "INFO"),
            log_file=log_data.get("file", "logs/daybook.log"),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """環境変数から設定を読み込む"""
        return cls(
            ollama=OllamaConfig(
                host=os.getenv("OLLAMA_HOST", "http://localhost:11434"),
                model=os.getenv("OLLAMA_MODEL", "qwen3:8b"),
                temperature=float(os.getenv("TEMPERATURE", "0.7")),
                max_tokens=int(os.getenv("MAX_TOKENS", "4096")),
            ),
            remote=RemoteConfig(
                base_url=os.getenv("DAYBOOK_REMOTE_URL"),
                timeout_seconds=float(os.getenv("DAYBOOK_REMOTE_TIMEOUT", "10")),
                token=os.getenv("DAYBOOK_REMOTE_TOKEN"),
            ),
            db_path=os.getenv("DAYBOOK_DB_PATH"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/daybook.log"),
        )
