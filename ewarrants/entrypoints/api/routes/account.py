"""アカウント API ルート

DELETE /api/account         { password } → 200 {}
GET    /api/account/export   → 200 text/csv（保証が0件なら 404）
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel

from ewarrants.entrypoints.api.deps import (
    get_account_service,
    get_current_uid,
    get_warranty_store,
)
from ewarrants.services.account import AccountService
from ewarrants.services.export import EXPORT_FILENAME, export_warranties_csv
from ewarrants.services.warranty_store import WarrantyStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/account", tags=["account"])


class DeleteAccountRequest(BaseModel):
    password: str = ""


@router.delete("")
def delete_account(
    body: DeleteAccountRequest,
    uid: str = Depends(get_current_uid),
    service: AccountService = Depends(get_account_service),
) -> dict:
    """パスワードを再確認し、全保証レコードとアカウントを削除する"""
    service.delete_account(uid, body.password)
    return {}


@router.get("/export")
def export_data(
    uid: str = Depends(get_current_uid),
    store: WarrantyStore = Depends(get_warranty_store),
) -> Response:
    """保証レコードを CSV でダウンロードする"""
    csv_text = export_warranties_csv(store, uid)
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )
