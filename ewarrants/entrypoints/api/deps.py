"""FastAPI 依存性注入

Firebase Auth JWT 検証、設定、Firestore リポジトリ・外部サービスアダプタの初期化を担当する。
各ルートは Depends() でこのモジュールの関数を呼び出して認証 uid と
サービスインスタンスを受け取る。
"""

from __future__ import annotations

import functools
import logging
import os
from dataclasses import dataclass

import firebase_admin
import firebase_admin.auth as fb_auth
import vertexai
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import credentials as fb_creds
from google.cloud import firestore
from vertexai.generative_models import GenerativeModel

from ewarrants.adapters.cloud_storage import GCSBlobStorage
from ewarrants.adapters.email_notifier import EmailConfig, SendGridMailer
from ewarrants.adapters.firebase_auth import FirebaseAccountAuthenticator
from ewarrants.adapters.firestore_repository import (
    FirestoreUserRepository,
    FirestoreWarrantyRepository,
)
from ewarrants.adapters.gemini import GeminiReceiptAnalyzer, GeminiWarrantyAssistant
from ewarrants.adapters.image_search import GoogleImageSearch
from ewarrants.config import AppConfig
from ewarrants.domain.ports import ProductImageSearch, UserRepository
from ewarrants.services.account import AccountService
from ewarrants.services.chat import ChatService
from ewarrants.services.receipts import ReceiptProcessor
from ewarrants.services.reminders import ExpiryReminderJob
from ewarrants.services.warranty_store import WarrantyStore

logger = logging.getLogger(__name__)


# ── 設定（プロセス内で1回のみ読み込む） ────────────────────────────────────────


@functools.lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """AppConfig を返す依存関数"""
    return AppConfig.from_env()


# ── Firebase Admin 初期化（プロセス内で1回のみ） ────────────────────────────────

_firebase_app: firebase_admin.App | None = None


def _get_firebase_app() -> firebase_admin.App:
    global _firebase_app
    if _firebase_app is None:
        try:
            _firebase_app = firebase_admin.get_app()
        except ValueError:
            cred = fb_creds.ApplicationDefault()
            project_id = os.environ.get("PROJECT_ID")
            _firebase_app = firebase_admin.initialize_app(
                cred,
                options={"projectId": project_id} if project_id else {},
            )
            logger.info("Firebase Admin initialized project=%s", project_id)
    return _firebase_app


# ── 認証 ────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AuthInfo:
    """Firebase Auth JWT から取得した認証情報"""

    uid: str
    email: str
    display_name: str


_bearer = HTTPBearer()


def get_auth_info(
    creds: HTTPAuthorizationCredentials = Depends(_bearer),
) -> AuthInfo:
    """
    Authorization: Bearer <id_token> ヘッダーを検証して AuthInfo を返す。

    Raises:
        HTTPException(401): トークンが無効な場合
    """
    _get_firebase_app()
    try:
        decoded = fb_auth.verify_id_token(creds.credentials)
    except Exception as e:
        logger.warning("Invalid Firebase ID token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired Firebase ID token",
        ) from e

    return AuthInfo(
        uid=decoded["uid"],
        email=decoded.get("email", ""),
        display_name=decoded.get("name", ""),
    )


# ── Firestore クライアント（シングルトン） ──────────────────────────────────────

_firestore_client: firestore.Client | None = None


def get_firestore_client() -> firestore.Client:
    global _firestore_client
    if _firestore_client is None:
        _firestore_client = firestore.Client()
        logger.info("Firestore client initialized")
    return _firestore_client


# ── リポジトリ依存 ─────────────────────────────────────────────────────────────


def get_user_repo() -> FirestoreUserRepository:
    """UserRepository を返す依存関数"""
    return FirestoreUserRepository(get_firestore_client())


def get_warranty_store() -> WarrantyStore:
    """所有者スコープの WarrantyStore を返す依存関数"""
    return WarrantyStore(FirestoreWarrantyRepository(get_firestore_client()))


def get_current_uid(
    auth_info: AuthInfo = Depends(get_auth_info),
    users: UserRepository = Depends(get_user_repo),
) -> str:
    """
    認証済み uid を返す。

    users/{uid} が未作成なら作成し、空の email/display_name を JWT claims から同期する。
    """
    users.ensure_user(auth_info.uid, auth_info.email, auth_info.display_name)
    return auth_info.uid


# ── 外部サービス依存 ───────────────────────────────────────────────────────────


def get_receipt_processor(
    config: AppConfig = Depends(get_config),
) -> ReceiptProcessor:
    """GCS + Gemini の ReceiptProcessor を返す依存関数"""
    vertexai.init(project=config.project_id, location=config.vertex_ai_location)
    return ReceiptProcessor(
        storage=GCSBlobStorage(bucket_name=config.gcs_bucket_name),
        analyzer=GeminiReceiptAnalyzer(model=GenerativeModel(config.gemini_model)),
    )


def get_image_search(config: AppConfig = Depends(get_config)) -> ProductImageSearch:
    """ProductImageSearch を返す依存関数"""
    return GoogleImageSearch(
        api_key=config.google_api_key,
        search_engine_id=config.search_engine_id,
    )


def get_chat_service(
    config: AppConfig = Depends(get_config),
    store: WarrantyStore = Depends(get_warranty_store),
) -> ChatService:
    """Gemini ツール呼び出しの ChatService を返す依存関数"""
    vertexai.init(project=config.project_id, location=config.vertex_ai_location)
    return ChatService(
        assistant=GeminiWarrantyAssistant(model_name=config.gemini_model),
        store=store,
        tz=config.tz,
    )


def get_account_service(
    config: AppConfig = Depends(get_config),
    users: UserRepository = Depends(get_user_repo),
    store: WarrantyStore = Depends(get_warranty_store),
) -> AccountService:
    """AccountService を返す依存関数"""
    _get_firebase_app()
    return AccountService(
        users=users,
        store=store,
        authenticator=FirebaseAccountAuthenticator(
            web_api_key=config.firebase_web_api_key
        ),
    )


def build_reminder_job(config: AppConfig | None = None) -> ExpiryReminderJob:
    """
    ExpiryReminderJob を組み立てる。

    スケジューラ（起動のたび）と worker エンドポイントの両方から呼ばれる。
    """
    config = config or get_config()
    db = get_firestore_client()
    return ExpiryReminderJob(
        users=FirestoreUserRepository(db),
        store=WarrantyStore(FirestoreWarrantyRepository(db)),
        mailer=SendGridMailer(
            EmailConfig(
                api_key=config.sendgrid_api_key,
                from_email=config.mail_from_email,
                from_name=config.mail_from_name,
            )
        ),
        per_user_timeout=config.reminder_user_timeout_seconds,
    )


def get_reminder_job() -> ExpiryReminderJob:
    """worker エンドポイント用の依存関数"""
    return build_reminder_job()
