"""ファイル・AI 補助 API ルート

POST /api/upload              → 201 { name, url, file_type }
POST /api/process-receipt     → 200 { product_name, purchase_date, warranty_months, category, receipts }
POST /api/find-product-image  → 200 { image_url }
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, UploadFile, status
from pydantic import BaseModel

from ewarrants.domain.errors import ValidationError
from ewarrants.domain.ports import ProductImageSearch
from ewarrants.entrypoints.api.deps import (
    get_current_uid,
    get_image_search,
    get_receipt_processor,
)
from ewarrants.entrypoints.api.schemas import ReceiptModel
from ewarrants.services.receipts import ReceiptProcessor

logger = logging.getLogger(__name__)
router = APIRouter(tags=["uploads"])


class ReceiptExtractionResponse(BaseModel):
    product_name: str | None
    purchase_date: str | None
    warranty_months: int | None
    category: str | None
    receipts: list[ReceiptModel]


class ProductImageRequest(BaseModel):
    product_name: str = ""
    category: str | None = None


class ProductImageResponse(BaseModel):
    image_url: str | None


@router.post("/upload", status_code=status.HTTP_201_CREATED, response_model=ReceiptModel)
def upload_file(
    file: UploadFile,
    uid: str = Depends(get_current_uid),
    processor: ReceiptProcessor = Depends(get_receipt_processor),
) -> ReceiptModel:
    """添付ファイルを保存して URL を返す"""
    content = file.file.read()
    receipt = processor.upload(
        uid,
        file.filename or "unknown",
        content,
        file.content_type or "application/octet-stream",
    )
    return ReceiptModel(name=receipt.name, url=receipt.url, file_type=receipt.file_type)


@router.post("/process-receipt", response_model=ReceiptExtractionResponse)
def process_receipt(
    receipt: UploadFile,
    uid: str = Depends(get_current_uid),
    processor: ReceiptProcessor = Depends(get_receipt_processor),
) -> ReceiptExtractionResponse:
    """レシート画像を保存し、Gemini で保証情報を抽出する"""
    content = receipt.file.read()
    extraction = processor.process_receipt(
        uid, content, receipt.content_type or "application/octet-stream"
    )
    return ReceiptExtractionResponse(
        product_name=extraction.product_name,
        purchase_date=extraction.purchase_date,
        warranty_months=extraction.warranty_months,
        category=extraction.category,
        receipts=[
            ReceiptModel(name=r.name, url=r.url, file_type=r.file_type)
            for r in extraction.receipts
        ],
    )


@router.post("/find-product-image", response_model=ProductImageResponse)
def find_product_image(
    body: ProductImageRequest,
    uid: str = Depends(get_current_uid),
    search: ProductImageSearch = Depends(get_image_search),
) -> ProductImageResponse:
    """商品名から商品画像の URL を検索する"""
    if not body.product_name.strip():
        raise ValidationError(
            "Product name is required.",
            errors=[{"field": "product_name", "message": "Product name is required."}],
        )
    image_url = search.find_image(body.product_name, body.category)
    logger.info("Product image lookup: uid=%s, found=%s", uid, image_url is not None)
    return ProductImageResponse(image_url=image_url)
