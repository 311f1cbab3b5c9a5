"""アカウント削除 - 子レコード → ユーザー文書 → 認証アカウントの順に削除する

途中で中断された場合に孤立した保証レコードが残らないよう、子を先に消す。
複数コレクションをまたぐため完全なアトミック性は保証しない。
"""

from __future__ import annotations

import logging

from ewarrants.domain.errors import NotFoundError, UnauthorizedError, ValidationError
from ewarrants.domain.ports import AccountAuthenticator, UserRepository
from ewarrants.services.warranty_store import WarrantyStore

logger = logging.getLogger(__name__)


class AccountService:
    """ユーザーアカウントのライフサイクル操作"""

    def __init__(
        self,
        users: UserRepository,
        store: WarrantyStore,
        authenticator: AccountAuthenticator,
    ) -> None:
        self._users = users
        self._store = store
        self._authenticator = authenticator

    def delete_account(self, uid: str, password: str) -> int:
        """
        パスワードを再確認してアカウントと全保証レコードを削除する。

        Returns:
            削除した保証レコード数

        Raises:
            ValidationError: password が空の場合
            NotFoundError: ユーザー文書が存在しない場合
            UnauthorizedError: パスワードが一致しない場合
        """
        if not password:
            raise ValidationError(
                "Password is required for confirmation",
                errors=[
                    {
                        "field": "password",
                        "message": "Password is required for confirmation",
                    }
                ],
            )

        user = self._users.get_user(uid)
        if user is None:
            raise NotFoundError("User not found.")

        if not self._authenticator.verify_password(user.email, password):
            logger.warning("Account deletion rejected (bad password): uid=%s", uid)
            raise UnauthorizedError("Incorrect password.")

        deleted = self._store.delete_all_for_owner(uid)
        self._users.delete_user(uid)
        self._authenticator.delete_account(uid)
        logger.info("Account deleted: uid=%s, warranties=%d", uid, deleted)
        return deleted
