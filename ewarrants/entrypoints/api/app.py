"""FastAPI アプリケーション

eWarrants バックエンド API。
Cloud Run Service として動作し、Firebase Auth で認証する。

エンドポイント一覧:
  POST   /api/upload
  POST   /api/process-receipt
  POST   /api/find-product-image
  POST   /api/chat
  POST   /api/warranties
  GET    /api/warranties
  GET    /api/warranties/{id}
  PUT    /api/warranties/{id}
  DELETE /api/warranties/{id}
  GET    /api/settings
  POST   /api/notification-prefs
  DELETE /api/account
  GET    /api/account/export
  POST   /worker/expiry-reminders   ← OIDC（Cloud Scheduler）

ルートと認証依存は同期関数（def）で定義する。Firestore / Gemini / SendGrid 等の
ブロッキング I/O は FastAPI のスレッドプールで実行され、イベントループ
（日次リマインダーのスケジューラを含む）を止めない。
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from ewarrants.domain.errors import EWarrantsError, UpstreamError, ValidationError
from ewarrants.entrypoints import worker
from ewarrants.entrypoints.api.deps import build_reminder_job, get_config
from ewarrants.entrypoints.api.routes import (
    account,
    chat,
    settings,
    uploads,
    warranties,
)
from ewarrants.logging_config import setup_logging
from ewarrants.services.reminders import DailyReminderScheduler

# ── ロギング初期化 ───────────────────────────────────────────────────────────
setup_logging()
logger = logging.getLogger(__name__)

# ── FastAPI アプリ ───────────────────────────────────────────────────────────
app = FastAPI(
    title="eWarrants API",
    description="保証書管理アプリ eWarrants のバックエンド API",
    version="1.0.0",
)


# ── ドメイン例外 → HTTP ステータス ─────────────────────────────────────────────


@app.exception_handler(EWarrantsError)
async def _handle_domain_error(request: Request, exc: EWarrantsError) -> JSONResponse:
    if isinstance(exc, UpstreamError):
        logger.error(
            "Upstream failure: %s %s - %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=exc.status_code, content={"detail": exc.public_message}
        )

    content: dict = {"detail": str(exc)}
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """リクエストボディの型エラーもドメインの ValidationError と同じ形で返す"""
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400, content={"detail": "Invalid request", "errors": errors}
    )


# ── グローバル例外ミドルウェア ──────────────────────────────────────────────────
# CORSMiddleware より先に登録して内側に置く（500 にも CORS ヘッダーを付けるため）


@app.middleware("http")
async def _catch_unhandled_exceptions(
    request: Request, call_next: Callable[[Request], Response]
) -> Response:
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(
            "Unhandled exception: %s %s - %s",
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


# ── CORS ───────────────────────────────────────────────────────────────────────
_extra_origins = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",") if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_extra_origins if _extra_origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    expose_headers=["Content-Disposition"],
)

# ── ルーター登録 ─────────────────────────────────────────────────────────────
_PREFIX = "/api"

app.include_router(uploads.router, prefix=_PREFIX)
app.include_router(chat.router, prefix=_PREFIX)
app.include_router(warranties.router, prefix=_PREFIX)
app.include_router(settings.router, prefix=_PREFIX)
app.include_router(account.router, prefix=_PREFIX)

# Firebase Auth なし。OIDC トークン検証（verify_worker_token）で保護される
app.include_router(worker.router, prefix="/worker")


# ── 期限リマインダー（プロセス内スケジューラ） ──────────────────────────────────

_scheduler: DailyReminderScheduler | None = None


@app.on_event("startup")
async def _on_startup() -> None:
    """REMINDER_SCHEDULER_ENABLED のとき日次リマインダーを起動する"""
    global _scheduler
    config = get_config()
    if not config.reminder_scheduler_enabled:
        logger.info("Expiry reminder scheduler disabled")
        return
    _scheduler = DailyReminderScheduler(
        job_factory=lambda: build_reminder_job(config),
        fire_at=config.reminder_time,
        tz=config.tz,
    )
    _scheduler.start()


@app.on_event("shutdown")
async def _on_shutdown() -> None:
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None


@app.get("/health")
async def health() -> dict:
    """ヘルスチェックエンドポイント（Cloud Run の起動確認用）"""
    return {"status": "ok"}


logger.info("eWarrants API started")
