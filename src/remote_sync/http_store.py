"""HTTP client for a REST document store.

Endpoints (relative to ``base_url``)::

    GET    /users/{user_id}/{collection}          -> [{"id": "...", "data": {...}}, ...]
    POST   /users/{user_id}/{collection}          -> {"id": "..."}
    PATCH  /users/{user_id}/{collection}/{id}
    DELETE /users/{user_id}/{collection}/{id}
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from src.daybook.exceptions import RemoteSyncError

from .documents import RemoteDocument

logger = logging.getLogger(__name__)


class HttpDocumentStore:
    """requests ベースのドキュメントストアクライアント"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: APIサーバーのURL
            timeout: リクエストのタイムアウト（秒）
            token: Bearerトークン（任意）
            session: テスト用に差し替え可能なセッション
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, user_id: str, collection: str, remote_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/users/{user_id}/{collection}"
        return f"{url}/{remote_id}" if remote_id else url

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response
        except requests.exceptions.RequestException as e:
            logger.error(f"リモートストアへの {method} に失敗: {url}: {e}")
            raise RemoteSyncError(f"リモートストアとの通信に失敗しました: {e}") from e

    def list_by_user(self, user_id: str, collection: str) -> List[RemoteDocument]:
        response = self._request("GET", self._url(user_id, collection))
        try:
            payload = response.json()
            return [RemoteDocument(str(entry["id"]), dict(entry.get("data") or {})) for entry in payload]
        except (ValueError, KeyError, TypeError) as e:
            raise RemoteSyncError(f"リモートストアの応答形式が不正です: {e}") from e

    def add(self, user_id: str, collection: str, data: Dict[str, Any]) -> str:
        response = self._request("POST", self._url(user_id, collection), json=data)
        try:
            return str(response.json()["id"])
        except (ValueError, KeyError, TypeError) as e:
            raise RemoteSyncError(f"リモートストアの応答形式が不正です: {e}") from e

    def update(self, user_id: str, collection: str, remote_id: str, data: Dict[str, Any]) -> None:
        self._request("PATCH", self._url(user_id, collection, remote_id), json=data)

    def delete(self, user_id: str, collection: str, remote_id: str) -> None:
        self._request("DELETE", self._url(user_id, collection, remote_id))
