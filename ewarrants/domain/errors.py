"""ドメイン固有の例外クラス

API 層の例外ハンドラーが各クラスを HTTP ステータスに対応付ける。
"""

from __future__ import annotations


class EWarrantsError(Exception):
    """eWarrants の基底例外"""

    status_code = 500


class ValidationError(EWarrantsError):
    """入力値の不足・不正（フィールド単位の詳細を保持する）"""

    status_code = 400

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(EWarrantsError):
    """リソースが存在しない（他ユーザー所有の場合も同じ扱い）"""

    status_code = 404


class UnauthorizedError(EWarrantsError):
    """認証情報の誤り・セッション切れ"""

    status_code = 401


class ConflictError(EWarrantsError):
    """一意制約の重複（メールアドレス等）"""

    status_code = 409


class UpstreamError(EWarrantsError):
    """外部サービス（GCS / SendGrid / Gemini / Custom Search）の失敗

    詳細はサーバーログにのみ出力し、呼び出し元には汎用メッセージを返す。
    """

    status_code = 502
    public_message = "An upstream service failed. Please try again later."
