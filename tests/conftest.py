"""共通テストフィクスチャ

全テストから利用可能なモックオブジェクトとサンプルデータを提供。

モックの作成:
- MagicMock(spec=ABC) でABCのメソッドシグネチャを保持
- WarrantyStore のテストにはインメモリの FakeWarrantyRepository を使う
"""

import datetime
import os
from unittest.mock import MagicMock

import pytest

# app の起動時にスケジューラを起動しない
os.environ.setdefault("REMINDER_SCHEDULER_ENABLED", "false")
os.environ.setdefault("PROJECT_ID", "ewarrants-test")

from ewarrants.domain.models import (  # noqa: E402
    EmailNotificationSettings,
    Receipt,
    User,
    Warranty,
    WarrantyDraft,
)
from ewarrants.domain.ports import (  # noqa: E402
    AccountAuthenticator,
    BlobStorage,
    Mailer,
    ReceiptAnalyzer,
    UserRepository,
    WarrantyAssistant,
    WarrantyRepository,
)
from ewarrants.services.warranty_store import WarrantyStore  # noqa: E402

FIXED_NOW = datetime.datetime(2024, 6, 1, 3, 0, tzinfo=datetime.timezone.utc)


class FakeWarrantyRepository(WarrantyRepository):
    """所有者ごとの dict に保持するインメモリ実装"""

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Warranty]] = {}

    def save(self, owner, warranty):
        self.rows.setdefault(owner, {})[warranty.id] = warranty

    def get(self, owner, warranty_id):
        return self.rows.get(owner, {}).get(warranty_id)

    def delete(self, owner, warranty_id):
        return self.rows.get(owner, {}).pop(warranty_id, None) is not None

    def list(self, owner, updated_after=None):
        return list(self.rows.get(owner, {}).values())

    def delete_all(self, owner):
        return len(self.rows.pop(owner, {}))


class TickingClock:
    """呼ばれるたびに1秒進む時計"""

    def __init__(self, start: datetime.datetime = FIXED_NOW) -> None:
        self.now = start

    def __call__(self) -> datetime.datetime:
        current = self.now
        self.now = current + datetime.timedelta(seconds=1)
        return current


# ========== サンプルデータ ==========


@pytest.fixture
def sample_receipt() -> Receipt:
    """サンプル添付ファイル"""
    return Receipt(
        name="Scanned Receipt",
        url="https://storage.googleapis.com/ewarrants/receipts/u1/abc.jpg",
        file_type="image/jpeg",
    )


@pytest.fixture
def sample_draft(sample_receipt) -> WarrantyDraft:
    """サンプル入力: 2024-06-01 購入 / 12ヶ月保証"""
    return WarrantyDraft(
        product_name="Laptop",
        purchase_date=datetime.date(2024, 6, 1),
        warranty_length_months=12,
        category="Electronics",
        description="Work laptop",
        receipts=[sample_receipt],
    )


@pytest.fixture
def sample_warranty(sample_receipt) -> Warranty:
    """サンプル保証レコード（期限 2025-06-01）"""
    return Warranty(
        id="w-1",
        owner="user-a",
        product_name="Laptop",
        purchase_date=datetime.date(2024, 6, 1),
        warranty_length_months=12,
        category="Electronics",
        description="Work laptop",
        receipts=[sample_receipt],
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


@pytest.fixture
def sample_user() -> User:
    """通知を有効にしたサンプルユーザー（30日前通知）"""
    return User(
        id="user-a",
        email="alice@example.com",
        display_name="Alice",
        email_notifications=EmailNotificationSettings(enabled=True, reminder_days=30),
    )


# ========== ストア ==========


@pytest.fixture
def fake_repo() -> FakeWarrantyRepository:
    return FakeWarrantyRepository()


@pytest.fixture
def store(fake_repo) -> WarrantyStore:
    """インメモリリポジトリ + 進む時計の WarrantyStore"""
    return WarrantyStore(fake_repo, clock=TickingClock())


# ========== モックオブジェクト ==========


@pytest.fixture
def mock_user_repo():
    """UserRepository のモック"""
    return MagicMock(spec=UserRepository)


@pytest.fixture
def mock_mailer():
    """Mailer のモック"""
    return MagicMock(spec=Mailer)


@pytest.fixture
def mock_blob_storage():
    """BlobStorage のモック"""
    storage = MagicMock(spec=BlobStorage)
    storage.upload.return_value = "https://storage.googleapis.com/bucket/receipts/x.jpg"
    return storage


@pytest.fixture
def mock_analyzer():
    """ReceiptAnalyzer のモック"""
    return MagicMock(spec=ReceiptAnalyzer)


@pytest.fixture
def mock_assistant():
    """WarrantyAssistant のモック"""
    return MagicMock(spec=WarrantyAssistant)


@pytest.fixture
def mock_authenticator():
    """AccountAuthenticator のモック"""
    return MagicMock(spec=AccountAuthenticator)
