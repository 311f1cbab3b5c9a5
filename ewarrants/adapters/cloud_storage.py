"""Cloud Storage Adapter

BlobStorage ABC の Google Cloud Storage 実装。
レシート・添付ファイルを保存し、保証レコードに埋め込む URL を返す。
"""

from __future__ import annotations

import logging

from google.cloud import storage

from ewarrants.domain.ports import BlobStorage

logger = logging.getLogger(__name__)


class GCSBlobStorage(BlobStorage):
    """
    Google Cloud Storage を使った BlobStorage 実装。

    全ファイルは単一バケット内の blob_path で管理する。
    パス規約: receipts/{uid}/{uuid}{ext}
    """

    def __init__(self, bucket_name: str, client: storage.Client | None = None) -> None:
        """
        Args:
            bucket_name: GCS バケット名
            client: 初期化済みの GCS クライアント（省略時は ADC で自動初期化）
        """
        self._client = client or storage.Client()
        self._bucket = self._client.bucket(bucket_name)
        self._bucket_name = bucket_name

    def upload(self, blob_path: str, content: bytes, content_type: str) -> str:
        """
        ファイルを GCS にアップロード。

        Args:
            blob_path: GCS 上のパス（例: "receipts/uid123/abc.jpg"）
            content: バイナリ内容
            content_type: MIME タイプ（例: "image/jpeg"）

        Returns:
            オブジェクトの公開 URL（到達性は検証しない）
        """
        blob = self._bucket.blob(blob_path)
        blob.upload_from_string(content, content_type=content_type)
        logger.info(
            "Uploaded: bucket=%s, path=%s, size=%d bytes",
            self._bucket_name,
            blob_path,
            len(content),
        )
        return blob.public_url
