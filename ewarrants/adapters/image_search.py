"""Product Image Search Adapter

ProductImageSearch ABC の Google Custom Search JSON API 実装。
商品名から公式の商品画像 URL を1件だけ取得する。
"""

from __future__ import annotations

import logging

import httpx

from ewarrants.domain.errors import UpstreamError
from ewarrants.domain.ports import ProductImageSearch

logger = logging.getLogger(__name__)

_CUSTOM_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"


class GoogleImageSearch(ProductImageSearch):
    """Google Custom Search（searchType=image）による画像検索"""

    def __init__(
        self,
        api_key: str,
        search_engine_id: str,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        """
        Args:
            api_key: Google API キー
            search_engine_id: プログラム可能な検索エンジンの ID (cx)
            client: httpx クライアント（テスト用に差し替え可能）
            timeout: リクエストのタイムアウト秒
        """
        self._api_key = api_key
        self._search_engine_id = search_engine_id
        self._client = client or httpx.Client(timeout=timeout)

    def find_image(self, product_name: str, category: str | None = None) -> str | None:
        """
        最上位の画像 URL を返す。結果がなければ None。

        Raises:
            UpstreamError: API 呼び出しに失敗した場合
        """
        query = f"{product_name} {category or ''} product shot official"
        params = {
            "q": query,
            "key": self._api_key,
            "cx": self._search_engine_id,
            "searchType": "image",
            "num": 1,
        }
        try:
            response = self._client.get(_CUSTOM_SEARCH_URL, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.exception("Image search failed: product=%s", product_name)
            raise UpstreamError("Image search failed") from e

        items = data.get("items") or []
        if not items:
            logger.info("No image found: product=%s", product_name)
            return None
        return items[0].get("link")
