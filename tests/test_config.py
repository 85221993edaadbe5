"""
設定の読み込みテスト
"""

from src.daybook.config import Config


def test_from_yaml_reads_sections(tmp_path):
    config_path = tmp_path / "app_config.yaml"
    config_path.write_text(
        """
ollama:
  model: "llama3.1:8b"
  temperature: 0.2
remote:
  base_url: "https://store.example.com"
  timeout_seconds: 3
storage:
  db_path: "/tmp/daybook-test.db"
log:
  level: "DEBUG"
""",
        encoding="utf-8",
    )

    config = Config.from_yaml(config_path)

    assert config.ollama.model == "llama3.1:8b"
    assert config.ollama.temperature == 0.2
    assert config.ollama.host == "http://localhost:11434"
    assert config.remote.base_url == "https://store.example.com"
    assert config.remote.timeout_seconds == 3
    assert config.db_path == "/tmp/daybook-test.db"
    assert config.log_level == "DEBUG"
    assert config.log_file == "logs/daybook.log"


def test_missing_yaml_falls_back_to_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DAYBOOK_REMOTE_URL", "https://remote.example.com")
    monkeypatch.setenv("OLLAMA_MODEL", "qwen3:4b")

    config = Config.from_yaml(tmp_path / "missing.yaml")

    assert config.remote.base_url == "https://remote.example.com"
    assert config.ollama.model == "qwen3:4b"


def test_defaults():
    config = Config()
    assert config.remote.base_url is None
    assert config.ollama.max_tokens == 4096
