"""ReceiptProcessor - レシートのアップロードと AI 抽出

設計方針:
- GCS への保存と Gemini での抽出をまとめて行う
- 外部サービスの失敗は UpstreamError に変換する（詳細はログのみ）
"""

from __future__ import annotations

import dataclasses
import logging
import uuid

from ewarrants.domain.errors import UpstreamError, ValidationError
from ewarrants.domain.models import Receipt, ReceiptExtraction
from ewarrants.domain.ports import BlobStorage, ReceiptAnalyzer

logger = logging.getLogger(__name__)

SCANNED_RECEIPT_NAME = "Scanned Receipt"


class ReceiptProcessor:
    """添付ファイルのアップロードとレシート解析"""

    def __init__(
        self, storage: BlobStorage, analyzer: ReceiptAnalyzer | None = None
    ) -> None:
        """
        Args:
            storage: ファイル保存先（GCSBlobStorage 等）
            analyzer: レシート解析器。アップロードのみの場合は省略可
        """
        self._storage = storage
        self._analyzer = analyzer

    def upload(
        self, owner: str, filename: str, content: bytes, mime_type: str
    ) -> Receipt:
        """
        添付ファイルを保存し、Receipt（name/url/file_type）を返す。

        Raises:
            ValidationError: ファイルが空の場合
            UpstreamError: ストレージへの保存に失敗した場合
        """
        if not content:
            raise ValidationError(
                "No file uploaded.",
                errors=[{"field": "file", "message": "No file uploaded."}],
            )
        blob_path = f"receipts/{owner}/{uuid.uuid4()}{_ext_from_mime(mime_type)}"
        try:
            url = self._storage.upload(blob_path, content, mime_type)
        except Exception as e:
            logger.exception("Upload failed: owner=%s, path=%s", owner, blob_path)
            raise UpstreamError("Failed to store file") from e
        logger.info("File uploaded: owner=%s, path=%s", owner, blob_path)
        return Receipt(name=filename, url=url, file_type=mime_type)

    def process_receipt(
        self, owner: str, content: bytes, mime_type: str
    ) -> ReceiptExtraction:
        """
        レシート画像を保存して保証情報を抽出する。

        Raises:
            ValidationError: 画像以外・空ファイルの場合
            UpstreamError: 保存または AI 解析に失敗した場合
        """
        if not mime_type.startswith("image/"):
            raise ValidationError(
                "No image file uploaded.",
                errors=[{"field": "receipt", "message": "An image file is required."}],
            )
        if self._analyzer is None:
            raise RuntimeError("ReceiptProcessor was built without an analyzer")

        receipt = self.upload(owner, SCANNED_RECEIPT_NAME, content, mime_type)
        try:
            extraction = self._analyzer.extract(content, mime_type)
        except Exception as e:
            logger.exception("Receipt extraction failed: owner=%s", owner)
            raise UpstreamError("Failed to process receipt") from e

        logger.info(
            "Receipt processed: owner=%s, product=%s, months=%s",
            owner,
            extraction.product_name,
            extraction.warranty_months,
        )
        return dataclasses.replace(extraction, receipts=[receipt])


def _ext_from_mime(mime_type: str) -> str:
    """MIME タイプからファイル拡張子を返す"""
    return {
        "application/pdf": ".pdf",
        "image/jpeg": ".jpg",
        "image/png": ".png",
        "image/webp": ".webp",
        "image/heic": ".heic",
    }.get(mime_type, "")
