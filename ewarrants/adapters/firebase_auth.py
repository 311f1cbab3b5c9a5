"""Firebase Auth Adapter

AccountAuthenticator ABC の実装。

- パスワード再確認: Identity Toolkit REST API（accounts:signInWithPassword）
- アカウント削除: firebase_admin.auth.delete_user

Admin SDK にはパスワード照合 API がないため、再確認だけは REST API を使う。
"""

from __future__ import annotations

import logging

import firebase_admin.auth as fb_auth
import httpx

from ewarrants.domain.errors import UpstreamError
from ewarrants.domain.ports import AccountAuthenticator

logger = logging.getLogger(__name__)

_SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

# 認証情報の誤りを示すエラーコード（それ以外の 400 は上流エラーとして扱う）
_BAD_CREDENTIAL_CODES = (
    "INVALID_PASSWORD",
    "INVALID_LOGIN_CREDENTIALS",
    "EMAIL_NOT_FOUND",
    "USER_DISABLED",
)


class FirebaseAccountAuthenticator(AccountAuthenticator):
    """Firebase Auth によるパスワード再確認とアカウント削除"""

    def __init__(
        self,
        web_api_key: str,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        """
        Args:
            web_api_key: Firebase プロジェクトの Web API キー
            client: httpx クライアント（テスト用に差し替え可能）
            timeout: リクエストのタイムアウト秒
        """
        self._web_api_key = web_api_key
        self._client = client or httpx.Client(timeout=timeout)

    def verify_password(self, email: str, password: str) -> bool:
        """
        email/password でサインインを試み、成功すれば True。

        Raises:
            UpstreamError: 認証情報の誤り以外の理由で失敗した場合
        """
        try:
            response = self._client.post(
                _SIGN_IN_URL,
                params={"key": self._web_api_key},
                json={"email": email, "password": password, "returnSecureToken": False},
            )
        except httpx.HTTPError as e:
            logger.exception("Password verification request failed")
            raise UpstreamError("Password verification failed") from e

        if response.status_code == 200:
            return True
        if response.status_code == 400:
            message = _error_message(response)
            if message.startswith(_BAD_CREDENTIAL_CODES):
                return False
            logger.error("Identity Toolkit rejected request: %s", message)
        else:
            logger.error(
                "Identity Toolkit returned unexpected status: %d", response.status_code
            )
        raise UpstreamError("Password verification failed")

    def delete_account(self, uid: str) -> None:
        """Firebase Auth のユーザーを削除（既に存在しなければ何もしない）"""
        try:
            fb_auth.delete_user(uid)
        except fb_auth.UserNotFoundError:
            logger.warning("Firebase user already deleted: uid=%s", uid)
            return
        logger.info("Firebase user deleted: uid=%s", uid)


def _error_message(response: httpx.Response) -> str:
    try:
        return str(response.json().get("error", {}).get("message", ""))
    except ValueError:
        return ""
