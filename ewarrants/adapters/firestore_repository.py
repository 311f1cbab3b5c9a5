"""Firestore Repository Adapter

WarrantyRepository と UserRepository の Firestore 実装。

Firestore コレクション構造:
  users/{uid}                               ← ユーザー設定（email_notifications 等）
  users/{uid}/warranties/{warrantyId}       ← 保証レコード

保証レコードはユーザー配下のサブコレクションに置くため、
他ユーザーの ID を指定しても参照先が存在せず、所有者チェックが構造的に保証される。
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

from google.cloud import firestore

from ewarrants.domain.models import (
    DEFAULT_REMINDER_DAYS,
    EmailNotificationSettings,
    Receipt,
    User,
    Warranty,
)
from ewarrants.domain.ports import UserRepository, WarrantyRepository

logger = logging.getLogger(__name__)

_USERS = "users"
_WARRANTIES = "warranties"


class FirestoreWarrantyRepository(WarrantyRepository):
    """
    Firestore を使った WarrantyRepository 実装。

    users/{uid}/warranties サブコレクションを管理する。
    purchase_date は ISO 文字列（YYYY-MM-DD）、タイムスタンプは UTC の datetime で保存する。
    """

    def __init__(self, db: firestore.Client) -> None:
        """
        Args:
            db: 初期化済みの Firestore クライアント
        """
        self._db = db

    def _collection(self, owner: str):
        return self._db.collection(_USERS).document(owner).collection(_WARRANTIES)

    def save(self, owner: str, warranty: Warranty) -> None:
        """レコードを全置換で書き込む"""
        self._collection(owner).document(warranty.id).set(
            self._warranty_to_dict(warranty)
        )
        logger.debug("Saved warranty: owner=%s, warranty_id=%s", owner, warranty.id)

    def get(self, owner: str, warranty_id: str) -> Warranty | None:
        """レコードを取得。存在しない場合は None を返す"""
        snap = self._collection(owner).document(warranty_id).get()
        if not snap.exists:
            return None
        return self._dict_to_warranty(snap.id, owner, snap.to_dict() or {})

    def delete(self, owner: str, warranty_id: str) -> bool:
        """レコードを削除。存在しなければ False を返す"""
        ref = self._collection(owner).document(warranty_id)
        if not ref.get().exists:
            return False
        ref.delete()
        return True

    def list(
        self, owner: str, updated_after: datetime.datetime | None = None
    ) -> list[Warranty]:
        """所有者のレコード一覧（並び順は呼び出し側で決める）"""
        query = self._collection(owner)
        if updated_after is not None:
            query = query.where("updated_at", ">", updated_after)
        return [
            self._dict_to_warranty(snap.id, owner, snap.to_dict() or {})
            for snap in query.stream()
        ]

    def delete_all(self, owner: str) -> int:
        """所有者の全レコードをバッチ削除し、件数を返す"""
        count = 0
        batch = self._db.batch()
        for snap in self._collection(owner).stream():
            batch.delete(snap.reference)
            count += 1
            # Firestore のバッチ上限（500件）を超えないよう分割コミット
            if count % 500 == 0:
                batch.commit()
                batch = self._db.batch()
        batch.commit()
        logger.info("Deleted warranties: owner=%s, count=%d", owner, count)
        return count

    # ── 変換ヘルパー ──────────────────────────────────────────────────────────

    @staticmethod
    def _warranty_to_dict(warranty: Warranty) -> dict:
        return {
            "owner": warranty.owner,
            "product_name": warranty.product_name,
            "purchase_date": warranty.purchase_date.isoformat(),
            "warranty_length_months": warranty.warranty_length_months,
            "category": warranty.category,
            "description": warranty.description,
            "receipts": [
                {"name": r.name, "url": r.url, "file_type": r.file_type}
                for r in warranty.receipts
            ],
            "product_image_url": warranty.product_image_url,
            "created_at": warranty.created_at,
            "updated_at": warranty.updated_at,
        }

    @staticmethod
    def _dict_to_warranty(warranty_id: str, owner: str, data: dict) -> Warranty:
        return Warranty(
            id=warranty_id,
            owner=data.get("owner") or owner,
            product_name=data.get("product_name") or "",
            purchase_date=_parse_date(data.get("purchase_date")),
            warranty_length_months=int(data.get("warranty_length_months") or 0),
            category=data.get("category"),
            description=data.get("description"),
            receipts=[
                Receipt(
                    name=r.get("name") or "",
                    url=r.get("url") or "",
                    file_type=r.get("file_type") or "",
                )
                for r in data.get("receipts") or []
            ],
            product_image_url=data.get("product_image_url"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


class FirestoreUserRepository(UserRepository):
    """
    Firestore を使った UserRepository 実装。

    users/{uid} を管理する。
    """

    def __init__(self, db: firestore.Client) -> None:
        self._db = db

    def get_user(self, uid: str) -> User | None:
        """ユーザーを取得。存在しない場合は None を返す"""
        snap = self._db.collection(_USERS).document(uid).get()
        if not snap.exists:
            return None
        return self._dict_to_user(uid, snap.to_dict() or {})

    def ensure_user(self, uid: str, email: str, display_name: str) -> User:
        """ユーザー文書を作成、または空の email/display_name を JWT の値で補完する"""
        ref = self._db.collection(_USERS).document(uid)
        snap = ref.get()
        if not snap.exists:
            data: dict[str, Any] = {
                "email": email,
                "display_name": display_name,
                "email_notifications": {
                    "enabled": False,
                    "reminder_days": DEFAULT_REMINDER_DAYS,
                },
                "created_at": firestore.SERVER_TIMESTAMP,
            }
            ref.set(data)
            logger.info("Created user: uid=%s", uid)
            return self._dict_to_user(uid, data)

        current = snap.to_dict() or {}
        updates: dict[str, Any] = {}
        if not current.get("email") and email:
            updates["email"] = email
        if not current.get("display_name") and display_name:
            updates["display_name"] = display_name
        if updates:
            ref.set(updates, merge=True)
            logger.info("Synced user profile: uid=%s, fields=%s", uid, list(updates))
        return self._dict_to_user(uid, {**current, **updates})

    def update_notifications(
        self, uid: str, settings: EmailNotificationSettings
    ) -> None:
        """メール通知設定を更新（ドキュメントがなければ作成）"""
        self._db.collection(_USERS).document(uid).set(
            {
                "email_notifications": {
                    "enabled": settings.enabled,
                    "reminder_days": settings.reminder_days,
                },
                "updated_at": firestore.SERVER_TIMESTAMP,
            },
            merge=True,
        )
        logger.info(
            "Updated notification settings: uid=%s, enabled=%s, reminder_days=%d",
            uid,
            settings.enabled,
            settings.reminder_days,
        )

    def list_notification_enabled(self) -> list[User]:
        """メール通知が有効なユーザーを全件取得"""
        snaps = (
            self._db.collection(_USERS)
            .where("email_notifications.enabled", "==", True)
            .stream()
        )
        return [self._dict_to_user(snap.id, snap.to_dict() or {}) for snap in snaps]

    def delete_user(self, uid: str) -> None:
        """ユーザー文書を削除"""
        self._db.collection(_USERS).document(uid).delete()
        logger.info("Deleted user: uid=%s", uid)

    @staticmethod
    def _dict_to_user(uid: str, data: dict) -> User:
        prefs = data.get("email_notifications") or {}
        reminder_days = prefs.get("reminder_days")
        return User(
            id=uid,
            email=data.get("email") or "",
            display_name=data.get("display_name") or "",
            email_notifications=EmailNotificationSettings(
                enabled=bool(prefs.get("enabled", False)),
                reminder_days=int(
                    DEFAULT_REMINDER_DAYS if reminder_days is None else reminder_days
                ),
            ),
        )


def _parse_date(value: Any) -> datetime.date:
    """Firestore の値を date に変換（ISO 文字列・Timestamp の両方を受け付ける）"""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value)[:10])
