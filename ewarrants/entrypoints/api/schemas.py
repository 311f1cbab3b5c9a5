"""API スキーマ - 複数ルートで共有する Pydantic モデル"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, Field

from ewarrants.domain import expiry
from ewarrants.domain.models import Receipt, Warranty, WarrantyDraft


class ReceiptModel(BaseModel):
    name: str
    url: str
    file_type: str


class WarrantyRequest(BaseModel):
    """作成・更新リクエスト（必須項目の検証は WarrantyStore が行う）"""

    product_name: str | None = None
    purchase_date: datetime.date | None = None
    warranty_length_months: int | None = None
    category: str | None = None
    description: str | None = None
    receipts: list[ReceiptModel] = Field(default_factory=list)
    product_image_url: str | None = None

    def to_draft(self) -> WarrantyDraft:
        return WarrantyDraft(
            product_name=self.product_name or "",
            purchase_date=self.purchase_date,
            warranty_length_months=self.warranty_length_months,
            category=self.category,
            description=self.description,
            receipts=[
                Receipt(name=r.name, url=r.url, file_type=r.file_type)
                for r in self.receipts
            ],
            product_image_url=self.product_image_url,
        )


class WarrantyResponse(BaseModel):
    id: str
    product_name: str
    purchase_date: datetime.date
    warranty_length_months: int
    expiry_date: datetime.date
    category: str | None
    description: str | None
    receipts: list[ReceiptModel]
    product_image_url: str | None
    created_at: datetime.datetime | None
    updated_at: datetime.datetime | None


def to_warranty_response(warranty: Warranty) -> WarrantyResponse:
    return WarrantyResponse(
        id=warranty.id,
        product_name=warranty.product_name,
        purchase_date=warranty.purchase_date,
        warranty_length_months=warranty.warranty_length_months,
        expiry_date=expiry.warranty_expiry(warranty),
        category=warranty.category,
        description=warranty.description,
        receipts=[
            ReceiptModel(name=r.name, url=r.url, file_type=r.file_type)
            for r in warranty.receipts
        ],
        product_image_url=warranty.product_image_url,
        created_at=warranty.created_at,
        updated_at=warranty.updated_at,
    )
