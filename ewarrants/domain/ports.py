"""Ports - サービスのインターフェース定義（ABC）

各Port（抽象基底クラス）は外部サービスとの契約を定義します。
実装クラス（Adapter）はこれらのABCを継承し、全ての抽象メソッドを実装する必要があります。

保証レコードを扱うメソッドは全て owner（Firebase Auth UID）を第1引数に取る。
所有者によるスコープをシグネチャで強制し、呼び出し側の書き忘れを防ぐ。
"""

from __future__ import annotations

import datetime
from abc import ABC, abstractmethod
from collections.abc import Callable

from ewarrants.domain.models import (
    EmailNotificationSettings,
    ReceiptExtraction,
    User,
    Warranty,
)


class WarrantyRepository(ABC):
    """保証レコードの永続化（Firestore等）"""

    @abstractmethod
    def save(self, owner: str, warranty: Warranty) -> None:
        """レコードを作成または全置換する"""
        pass

    @abstractmethod
    def get(self, owner: str, warranty_id: str) -> Warranty | None:
        """レコードを取得。存在しない・他ユーザー所有の場合はNoneを返す"""
        pass

    @abstractmethod
    def delete(self, owner: str, warranty_id: str) -> bool:
        """レコードを削除。削除対象が存在しなければFalseを返す"""
        pass

    @abstractmethod
    def list(
        self, owner: str, updated_after: datetime.datetime | None = None
    ) -> list[Warranty]:
        """所有者のレコード一覧。updated_after 指定時はそれより後の更新分のみ"""
        pass

    @abstractmethod
    def delete_all(self, owner: str) -> int:
        """所有者の全レコードを削除し、削除件数を返す"""
        pass


class UserRepository(ABC):
    """ユーザー設定の永続化（Firestore等）"""

    @abstractmethod
    def get_user(self, uid: str) -> User | None:
        """ユーザーを取得。存在しない場合はNoneを返す"""
        pass

    @abstractmethod
    def ensure_user(self, uid: str, email: str, display_name: str) -> User:
        """ユーザー文書がなければ作成し、空の email/display_name を同期する"""
        pass

    @abstractmethod
    def update_notifications(
        self, uid: str, settings: EmailNotificationSettings
    ) -> None:
        """メール通知設定を更新"""
        pass

    @abstractmethod
    def list_notification_enabled(self) -> list[User]:
        """メール通知を有効にしている全ユーザーを取得"""
        pass

    @abstractmethod
    def delete_user(self, uid: str) -> None:
        """ユーザー文書を削除"""
        pass


class BlobStorage(ABC):
    """バイナリファイルのアップロード（GCS等）"""

    @abstractmethod
    def upload(self, blob_path: str, content: bytes, content_type: str) -> str:
        """ファイルをアップロード。永続的なURLを返す"""
        pass


class Mailer(ABC):
    """メール送信（SendGrid等）"""

    @abstractmethod
    def send(self, to_email: str, subject: str, html_body: str) -> None:
        """HTMLメールを送信。失敗時は例外を送出する"""
        pass


class ReceiptAnalyzer(ABC):
    """レシート画像の解析（Gemini等のLLM）"""

    @abstractmethod
    def extract(self, content: bytes, mime_type: str) -> ReceiptExtraction:
        """画像から商品名・購入日・保証期間・カテゴリを抽出"""
        pass


# getWarranties ツールの実行関数: LLM が渡した引数 dict → LLM に返すレコード dict のリスト
WarrantyToolHandler = Callable[[dict], list[dict]]


class WarrantyAssistant(ABC):
    """ツール呼び出し対応の対話LLM（Gemini等）"""

    @abstractmethod
    def converse(
        self,
        message: str,
        history: list[dict],
        today: datetime.date,
        get_warranties: WarrantyToolHandler,
    ) -> str:
        """
        ユーザー発話に応答する。

        LLM が getWarranties ツールを呼んだ場合は get_warranties を実行し、
        その結果を LLM に返してから最終的な応答文を返す。
        """
        pass


class ProductImageSearch(ABC):
    """商品画像の検索（Google Custom Search等）"""

    @abstractmethod
    def find_image(self, product_name: str, category: str | None = None) -> str | None:
        """最も関連する画像のURLを返す。見つからなければNone"""
        pass


class AccountAuthenticator(ABC):
    """外部IDプロバイダのアカウント操作（Firebase Auth等）"""

    @abstractmethod
    def verify_password(self, email: str, password: str) -> bool:
        """パスワードの再確認。一致すればTrue"""
        pass

    @abstractmethod
    def delete_account(self, uid: str) -> None:
        """IDプロバイダ上のアカウントを削除"""
        pass
