"""ドメインモデル - 外部依存なしのデータ構造"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum

SUGGESTED_CATEGORIES: tuple[str, ...] = (
    "Electronics",
    "Appliances",
    "Furniture",
    "Automotive",
    "Clothing",
    "Jewelry",
    "Tools",
    "Sports & Outdoors",
    "Toys",
    "Health & Beauty",
    "Home & Garden",
    "Other",
)

DEFAULT_REMINDER_DAYS = 30


class SortOrder(Enum):
    """チャットツールが指定できる購入日ソート順"""

    PURCHASE_DATE_ASC = "PURCHASE_DATE_ASC"
    PURCHASE_DATE_DESC = "PURCHASE_DATE_DESC"


@dataclass(frozen=True)
class Receipt:
    """保証書・レシートの添付ファイル"""

    name: str  # 例: "Scanned Receipt"
    url: str  # GCS の公開URL
    file_type: str  # MIME タイプ: "image/jpeg"


@dataclass(frozen=True)
class WarrantyDraft:
    """作成・更新時にユーザーが指定できるフィールド一式

    purchase_date / warranty_length_months は未検証の値を受け取り、
    WarrantyStore が検証してから Warranty に変換する。
    """

    product_name: str
    purchase_date: datetime.date | None
    warranty_length_months: int | None
    category: str | None = None
    description: str | None = None
    receipts: list[Receipt] = field(default_factory=list)
    product_image_url: str | None = None


@dataclass(frozen=True)
class Warranty:
    """保証レコード（Firestoreに永続化）"""

    id: str  # uuid4
    owner: str  # Firebase Auth UID
    product_name: str
    purchase_date: datetime.date
    warranty_length_months: int
    category: str | None = None
    description: str | None = None
    receipts: list[Receipt] = field(default_factory=list)
    product_image_url: str | None = None
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None


@dataclass(frozen=True)
class EmailNotificationSettings:
    """期限切れリマインダーメールの設定"""

    enabled: bool = False
    reminder_days: int = DEFAULT_REMINDER_DAYS


@dataclass(frozen=True)
class User:
    """ユーザー（認証は Firebase Auth、ここでは通知に必要な属性のみ）"""

    id: str  # Firebase Auth UID
    email: str
    display_name: str = ""
    email_notifications: EmailNotificationSettings = field(
        default_factory=EmailNotificationSettings
    )


@dataclass(frozen=True)
class ReceiptExtraction:
    """レシート画像から抽出した保証情報（値が読み取れなければ None）"""

    product_name: str | None
    purchase_date: str | None  # YYYY-MM-DD
    warranty_months: int | None
    category: str | None
    receipts: list[Receipt] = field(default_factory=list)


@dataclass(frozen=True)
class ChatReply:
    """チャット応答: LLM の文章と、ツールが返したレコード"""

    response: str
    data: list[Warranty] = field(default_factory=list)


@dataclass(frozen=True)
class ReminderRunSummary:
    """リマインダージョブ1回分の集計（ログ出力用）"""

    users: int = 0
    sent: int = 0
    errors: int = 0
