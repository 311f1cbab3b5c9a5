"""設定管理 - 環境変数の型安全な読み込み"""

from __future__ import annotations

import datetime
import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from dotenv import load_dotenv


@dataclass(frozen=True)
class AppConfig:
    """アプリケーション設定"""

    project_id: str
    gcs_bucket_name: str = ""
    vertex_ai_location: str = "us-central1"
    gemini_model: str = "gemini-2.5-flash"
    sendgrid_api_key: str = ""
    mail_from_email: str = "noreply@ewarrants.app"
    mail_from_name: str = "eWarrants"
    google_api_key: str = ""
    search_engine_id: str = ""
    firebase_web_api_key: str = ""
    reminder_time: datetime.time = datetime.time(8, 0)
    reminder_timezone: str = "Asia/Kolkata"
    reminder_user_timeout_seconds: float = 30.0
    reminder_scheduler_enabled: bool = True

    @property
    def tz(self) -> ZoneInfo:
        """期限比較とスケジュールの基準タイムゾーン"""
        return ZoneInfo(self.reminder_timezone)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """環境変数から設定を読み込む"""
        load_dotenv()

        project_id = os.getenv("PROJECT_ID")
        if not project_id:
            raise ValueError("PROJECT_ID is not set in environment")

        reminder_timezone = os.getenv("REMINDER_TIMEZONE", "Asia/Kolkata")
        try:
            ZoneInfo(reminder_timezone)
        except Exception as e:
            raise ValueError(f"REMINDER_TIMEZONE is invalid: {reminder_timezone}") from e

        raw_time = os.getenv("REMINDER_TIME", "08:00")
        try:
            reminder_time = datetime.time.fromisoformat(raw_time)
        except ValueError as e:
            raise ValueError(f"REMINDER_TIME must be HH:MM: {raw_time}") from e

        return cls(
            project_id=project_id,
            gcs_bucket_name=os.getenv("GCS_BUCKET_NAME", ""),
            vertex_ai_location=os.getenv("VERTEX_AI_LOCATION", "us-central1"),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            sendgrid_api_key=os.getenv("SENDGRID_API_KEY", ""),
            mail_from_email=os.getenv("MAIL_FROM_EMAIL", "noreply@ewarrants.app"),
            mail_from_name=os.getenv("MAIL_FROM_NAME", "eWarrants"),
            google_api_key=os.getenv("GOOGLE_API_KEY", ""),
            search_engine_id=os.getenv("SEARCH_ENGINE_ID", ""),
            firebase_web_api_key=os.getenv("FIREBASE_WEB_API_KEY", ""),
            reminder_time=reminder_time,
            reminder_timezone=reminder_timezone,
            reminder_user_timeout_seconds=float(
                os.getenv("REMINDER_USER_TIMEOUT_SECONDS", "30")
            ),
            reminder_scheduler_enabled=env_flag("REMINDER_SCHEDULER_ENABLED", True),
        )


def env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")
