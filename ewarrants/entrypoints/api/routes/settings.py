"""ユーザー設定 API ルート

GET  /api/settings            → メール通知設定
POST /api/notification-prefs  { enabled, reminder_days } → 200 { msg }
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, StrictBool, StrictInt

from ewarrants.domain.errors import NotFoundError, ValidationError
from ewarrants.domain.models import EmailNotificationSettings
from ewarrants.domain.ports import UserRepository
from ewarrants.entrypoints.api.deps import get_current_uid, get_user_repo

logger = logging.getLogger(__name__)
router = APIRouter(tags=["settings"])


class SettingsResponse(BaseModel):
    email: str
    display_name: str
    email_notifications_enabled: bool
    reminder_days: int


class NotificationPrefsRequest(BaseModel):
    enabled: StrictBool
    reminder_days: StrictInt


@router.get("/settings", response_model=SettingsResponse)
def get_settings(
    uid: str = Depends(get_current_uid),
    users: UserRepository = Depends(get_user_repo),
) -> SettingsResponse:
    """ユーザー設定を返す"""
    user = users.get_user(uid)
    if user is None:
        raise NotFoundError("User not found.")
    return SettingsResponse(
        email=user.email,
        display_name=user.display_name,
        email_notifications_enabled=user.email_notifications.enabled,
        reminder_days=user.email_notifications.reminder_days,
    )


@router.post("/notification-prefs")
def update_notification_prefs(
    body: NotificationPrefsRequest,
    uid: str = Depends(get_current_uid),
    users: UserRepository = Depends(get_user_repo),
) -> dict:
    """メール通知設定を更新する"""
    if body.reminder_days < 0:
        raise ValidationError(
            "Invalid input types.",
            errors=[{"field": "reminder_days", "message": "must be >= 0"}],
        )
    users.update_notifications(
        uid,
        EmailNotificationSettings(enabled=body.enabled, reminder_days=body.reminder_days),
    )
    return {"msg": "Notification preferences updated successfully."}
