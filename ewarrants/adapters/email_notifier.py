"""Email Notifier Adapter

SendGrid を使った Mailer 実装。
期限切れリマインダー（日次ジョブ）の送信に使用する。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import sendgrid
from sendgrid.helpers.mail import Content, Email, Mail, To

from ewarrants.domain.ports import Mailer

logger = logging.getLogger(__name__)


@dataclass
class EmailConfig:
    """メール送信の設定"""

    api_key: str
    from_email: str = "noreply@ewarrants.app"
    from_name: str = "eWarrants"


class SendGridMailer(Mailer):
    """SendGrid を使った HTML メール送信"""

    def __init__(
        self, config: EmailConfig, client: sendgrid.SendGridAPIClient | None = None
    ) -> None:
        """
        Args:
            config: SendGrid API キーと差出人の設定
            client: 初期化済みの SendGrid クライアント（テスト用）
        """
        self._sg = client or sendgrid.SendGridAPIClient(api_key=config.api_key)
        self._from_email = Email(config.from_email, config.from_name)

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        """メールを送信する。失敗はログに記録して再送出する"""
        mail = Mail(
            from_email=self._from_email,
            to_emails=To(to_email),
            subject=subject,
            html_content=Content("text/html", html_body),
        )
        try:
            response = self._sg.send(mail)
            logger.info(
                "Email sent: to=%s, subject=%s, status=%d",
                to_email,
                subject,
                response.status_code,
            )
        except Exception:
            logger.exception("Failed to send email: to=%s", to_email)
            raise
