"""保証レコード API ルート

POST   /api/warranties                      → 201 Warranty
GET    /api/warranties[?last_pulled_at=ms]  → 200 [Warranty...]（購入日の新しい順）
GET    /api/warranties/{id}                 → 200 Warranty
PUT    /api/warranties/{id}                 → 200 Warranty
DELETE /api/warranties/{id}                 → 200 { msg }

他ユーザーのレコードは存在しないものとして 404 を返す。
"""

from __future__ import annotations

import datetime
import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from ewarrants.entrypoints.api.deps import get_current_uid, get_warranty_store
from ewarrants.entrypoints.api.schemas import (
    WarrantyRequest,
    WarrantyResponse,
    to_warranty_response,
)
from ewarrants.services.warranty_store import WarrantyStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/warranties", tags=["warranties"])

# 9999-12-31T23:59:59.999Z（datetime で表せる上限）
_MAX_EPOCH_MS = 253_402_300_799_999
_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


class MessageResponse(BaseModel):
    msg: str


@router.post("", status_code=status.HTTP_201_CREATED, response_model=WarrantyResponse)
def create_warranty(
    body: WarrantyRequest,
    uid: str = Depends(get_current_uid),
    store: WarrantyStore = Depends(get_warranty_store),
) -> WarrantyResponse:
    """保証レコードを作成する"""
    warranty = store.create(uid, body.to_draft())
    return to_warranty_response(warranty)


@router.get("", response_model=list[WarrantyResponse])
def list_warranties(
    last_pulled_at: int | None = Query(
        default=None,
        ge=0,
        le=_MAX_EPOCH_MS,
        description="差分同期: この時刻（epoch ミリ秒）より後の更新のみ返す",
    ),
    uid: str = Depends(get_current_uid),
    store: WarrantyStore = Depends(get_warranty_store),
) -> list[WarrantyResponse]:
    """保証レコード一覧を返す（購入日の新しい順）"""
    updated_after = None
    if last_pulled_at is not None:
        updated_after = _EPOCH + datetime.timedelta(milliseconds=last_pulled_at)
    records = store.list_by_owner(uid, updated_after=updated_after)
    return [to_warranty_response(w) for w in records]


@router.get("/{warranty_id}", response_model=WarrantyResponse)
def get_warranty(
    warranty_id: str,
    uid: str = Depends(get_current_uid),
    store: WarrantyStore = Depends(get_warranty_store),
) -> WarrantyResponse:
    """指定した保証レコードを返す"""
    return to_warranty_response(store.get(uid, warranty_id))


@router.put("/{warranty_id}", response_model=WarrantyResponse)
def update_warranty(
    warranty_id: str,
    body: WarrantyRequest,
    uid: str = Depends(get_current_uid),
    store: WarrantyStore = Depends(get_warranty_store),
) -> WarrantyResponse:
    """保証レコードを更新する（編集可能フィールドの全置換）"""
    return to_warranty_response(store.update(uid, warranty_id, body.to_draft()))


@router.delete("/{warranty_id}", response_model=MessageResponse)
def delete_warranty(
    warranty_id: str,
    uid: str = Depends(get_current_uid),
    store: WarrantyStore = Depends(get_warranty_store),
) -> MessageResponse:
    """保証レコードを削除する"""
    store.delete(uid, warranty_id)
    return MessageResponse(msg="Warranty deleted successfully")
