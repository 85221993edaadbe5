"""Daybookのカスタム例外定義

ValidationError / NotFoundError / WrongKindError は呼び出し元へ伝播する。
PersistenceError / RemoteSyncError はログとステータス表示に使われ、
ミューテーションの境界を越えて送出されない。
"""

from __future__ import annotations

from typing import Optional


class DaybookError(Exception):
    """Daybook基底例外"""

    pass


class ValidationError(DaybookError):
    """必須入力が空、または日付・優先度が不正"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(DaybookError):
    """存在しないIDへの参照"""

    def __init__(self, item_id: int):
        super().__init__(f"ID {item_id} の項目が見つかりません")
        self.item_id = item_id


class WrongKindError(DaybookError):
    """ノートに対するタスク専用操作など、種別の不一致"""

    def __init__(self, item_id: int, expected: str):
        super().__init__(f"ID {item_id} は {expected} ではありません")
        self.item_id = item_id
        self.expected = expected


class PersistenceError(DaybookError):
    """ローカルストアの読み書き失敗"""

    pass


class RemoteSyncError(DaybookError):
    """リモートストアまたはAI連携の失敗（常に非致命的）"""

    pass
