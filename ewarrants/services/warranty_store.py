"""WarrantyStore - 所有者スコープの保証レコード操作

WarrantyRepository（永続化）の上に、入力検証・ID/タイムスタンプ採番・
NotFound 変換・期限ウィンドウ検索を載せたサービス。

設計方針:
- 全メソッドの第1引数は owner。他ユーザーのレコードは「存在しない」と同じ扱い
- 期限日は保存せず、検索のたびに expiry モジュールで再計算する
- 並び順はここで確定させる（リポジトリ実装に依存しない）
"""

from __future__ import annotations

import dataclasses
import datetime
import logging
import uuid

from ewarrants.domain import expiry
from ewarrants.domain.errors import NotFoundError, ValidationError
from ewarrants.domain.models import Warranty, WarrantyDraft
from ewarrants.domain.ports import WarrantyRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class WarrantyStore:
    """
    保証レコードのユースケース層。

    API ルート・チャットブリッジ・リマインダージョブ・アカウント削除の
    全てがこのクラス経由でレコードにアクセスする。
    """

    def __init__(self, repo: WarrantyRepository, clock=_utcnow) -> None:
        """
        Args:
            repo: 保証レコードのリポジトリ（FirestoreWarrantyRepository 等）
            clock: 現在時刻（UTC aware datetime）を返す関数。テスト用に差し替え可能
        """
        self._repo = repo
        self._clock = clock

    # ── CRUD ─────────────────────────────────────────────────────────────────

    def create(self, owner: str, draft: WarrantyDraft) -> Warranty:
        """
        保証レコードを作成する。

        Raises:
            ValidationError: product_name / purchase_date / warranty_length_months が不正
        """
        self._validate(draft)
        now = self._clock()
        warranty = Warranty(
            id=str(uuid.uuid4()),
            owner=owner,
            created_at=now,
            updated_at=now,
            **self._editable_fields(draft),
        )
        self._repo.save(owner, warranty)
        logger.info("Warranty created: owner=%s, warranty_id=%s", owner, warranty.id)
        return warranty

    def get(self, owner: str, warranty_id: str) -> Warranty:
        """
        保証レコードを取得する。

        Raises:
            NotFoundError: 存在しない、または owner が一致しない場合
        """
        warranty = self._repo.get(owner, warranty_id)
        if warranty is None or warranty.owner != owner:
            raise NotFoundError(f"Warranty not found with id of {warranty_id}")
        return warranty

    def update(self, owner: str, warranty_id: str, draft: WarrantyDraft) -> Warranty:
        """
        編集可能フィールドを全置換する。id / owner / created_at は変更しない。

        Raises:
            NotFoundError: 存在しない、または owner が一致しない場合
            ValidationError: 必須フィールドが不正な場合
        """
        current = self.get(owner, warranty_id)
        self._validate(draft)
        updated = dataclasses.replace(
            current,
            updated_at=self._clock(),
            **self._editable_fields(draft),
        )
        self._repo.save(owner, updated)
        logger.info("Warranty updated: owner=%s, warranty_id=%s", owner, warranty_id)
        return updated

    def delete(self, owner: str, warranty_id: str) -> None:
        """
        保証レコードを削除する。

        Raises:
            NotFoundError: 存在しない、または owner が一致しない場合
        """
        if not self._repo.delete(owner, warranty_id):
            raise NotFoundError(f"Warranty not found with id of {warranty_id}")
        logger.info("Warranty deleted: owner=%s, warranty_id=%s", owner, warranty_id)

    # ── 一覧・検索 ───────────────────────────────────────────────────────────

    def list_by_owner(
        self, owner: str, updated_after: datetime.datetime | None = None
    ) -> list[Warranty]:
        """
        所有者のレコード一覧を購入日の新しい順で返す。

        Args:
            owner: 所有者 UID
            updated_after: 指定時は updated_at がこれより後のレコードのみ（差分同期用）
        """
        records = [
            w
            for w in self._repo.list(owner, updated_after=updated_after)
            if w.owner == owner
        ]
        if updated_after is not None:
            records = [
                w
                for w in records
                if w.updated_at is not None and w.updated_at > updated_after
            ]
        return sort_by_purchase_date(records, descending=True)

    def find_expiring_within(
        self, owner: str, from_date: datetime.date, to_date: datetime.date
    ) -> list[Warranty]:
        """期限日が [from_date, to_date] に入るレコードを ID 順で返す"""
        matches = [
            w
            for w in self._repo.list(owner)
            if w.owner == owner and expiry.is_expiring_within(w, from_date, to_date)
        ]
        return sorted(matches, key=lambda w: w.id)

    def find_expiring_on(self, owner: str, target: datetime.date) -> list[Warranty]:
        """期限日がちょうど target のレコードを返す"""
        return self.find_expiring_within(owner, target, target)

    def delete_all_for_owner(self, owner: str) -> int:
        """アカウント削除時のカスケード削除。削除件数を返す"""
        count = self._repo.delete_all(owner)
        logger.info("Deleted all warranties: owner=%s, count=%d", owner, count)
        return count

    # ── 内部ヘルパー ─────────────────────────────────────────────────────────

    @staticmethod
    def _validate(draft: WarrantyDraft) -> None:
        errors: list[dict] = []
        if not isinstance(draft.product_name, str) or not draft.product_name.strip():
            errors.append({"field": "product_name", "message": "Product name is required"})
        if not isinstance(draft.purchase_date, datetime.date):
            errors.append(
                {"field": "purchase_date", "message": "Purchase date must be a valid date"}
            )
        length = draft.warranty_length_months
        if isinstance(length, bool) or not isinstance(length, int) or length < 0:
            errors.append(
                {
                    "field": "warranty_length_months",
                    "message": "Warranty length must be a non-negative integer",
                }
            )
        if errors:
            raise ValidationError("Invalid warranty fields", errors=errors)

    @staticmethod
    def _editable_fields(draft: WarrantyDraft) -> dict:
        purchase_date = draft.purchase_date
        # datetime が渡された場合も日単位に正規化する
        if isinstance(purchase_date, datetime.datetime):
            purchase_date = purchase_date.date()
        return {
            "product_name": draft.product_name.strip(),
            "purchase_date": purchase_date,
            "warranty_length_months": draft.warranty_length_months,
            "category": draft.category or None,
            "description": draft.description or None,
            "receipts": list(draft.receipts),
            "product_image_url": draft.product_image_url or None,
        }


def sort_by_purchase_date(
    records: list[Warranty], descending: bool = True
) -> list[Warranty]:
    """購入日でソート。同日のレコードは ID 順で安定させる"""
    ordered = sorted(records, key=lambda w: w.id)
    return sorted(ordered, key=lambda w: w.purchase_date, reverse=descending)
