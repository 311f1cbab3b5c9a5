"""Cloud Scheduler ワーカー エントリーポイント

プロセス内スケジューラを使わない構成（REMINDER_SCHEDULER_ENABLED=false で
Cloud Run をスケールさせる場合など）では、Cloud Scheduler がこのエンドポイントを
毎日 REMINDER_TIME に呼び出す。

POST /worker/expiry-reminders → 200 { status, users, sent, errors }
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ewarrants.config import AppConfig
from ewarrants.domain.expiry import today_in
from ewarrants.entrypoints.api.deps import get_config, get_reminder_job
from ewarrants.entrypoints.api.worker_auth import verify_worker_token
from ewarrants.services.reminders import ExpiryReminderJob

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_worker_token)], tags=["worker"])


@router.post("/expiry-reminders")
async def run_expiry_reminders(
    config: AppConfig = Depends(get_config),
    job: ExpiryReminderJob = Depends(get_reminder_job),
) -> dict:
    """今日（REMINDER_TIMEZONE 基準）を基準日としてリマインダーを1回送信する"""
    today = today_in(config.tz)
    summary = await job.run(today)
    return {
        "status": "ok",
        "users": summary.users,
        "sent": summary.sent,
        "errors": summary.errors,
    }
