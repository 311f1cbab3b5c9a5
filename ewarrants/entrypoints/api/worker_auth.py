"""Worker エンドポイント用 OIDC トークン検証

Cloud Scheduler が付与する Google OIDC トークンを検証し、
想定外の呼び出し元からの /worker/* リクエストを 401 で拒否する。

- email claim が WORKER_SERVICE_ACCOUNT_EMAIL と一致すること
- WORKER_SERVICE_ACCOUNT_EMAIL 未設定時は fail-closed
- LOCAL_MODE=true 時は検証しない（ローカルから手動で叩くため）
"""

from __future__ import annotations

import logging
import os

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

logger = logging.getLogger(__name__)

# ヘッダー欠落時も 403 ではなく 401 を返す
_worker_bearer = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def verify_worker_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_worker_bearer),
) -> None:
    """/worker/* ルーターに適用する Depends 関数"""
    if os.environ.get("LOCAL_MODE"):
        return

    expected_email = os.environ.get("WORKER_SERVICE_ACCOUNT_EMAIL")
    if not expected_email:
        logger.error("WORKER_SERVICE_ACCOUNT_EMAIL is not set; denying worker request")
        raise _unauthorized("Worker authentication is not configured")

    if credentials is None:
        raise _unauthorized("Missing Authorization header")

    try:
        claims = id_token.verify_oauth2_token(
            credentials.credentials,
            google_requests.Request(),
            audience=None,
        )
    except Exception as exc:
        logger.warning("Worker OIDC verification failed: %s", exc)
        raise _unauthorized("Invalid OIDC token") from exc

    caller = claims.get("email", "")
    if caller != expected_email:
        logger.warning("Worker caller rejected: expected=%s, got=%s", expected_email, caller)
        raise _unauthorized("Unauthorized service account")
