"""
ロギング設定モジュール

サーバー起動時に一度だけ呼ばれる。HTTPクライアント系ライブラリのログは
WARNING 以上に抑える。
"""

import logging
from pathlib import Path

NOISY_LOGGERS = ("urllib3", "httpx", "httpcore")


def setup_logger(log_level: str = "INFO", log_file: str = "logs/daybook.log") -> logging.Logger:
    """
    ロガーのセットアップ

    Args:
        log_level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: ログファイルのパス

    Returns:
        設定済みのルートロガー
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[
                logging.FileHandler(log_path, encoding="utf-8"),
                logging.StreamHandler(),
            ],
        )
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return root
