"""メール本文の組み立て

件名と HTML 本文のタプルを返す。送信は Mailer ポートの責務。
"""

from __future__ import annotations

from html import escape


def build_expiry_reminder(
    name: str, reminder_days: int, product_names: list[str]
) -> tuple[str, str]:
    """期限切れリマインダーメールの件名と本文"""
    subject = f"[eWarrants] You have warranties expiring in {reminder_days} days!"
    items = "".join(f"<li><strong>{escape(p)}</strong></li>" for p in product_names)
    body = (
        f"<p>Hi {escape(name)},</p>"
        "<p>This is a reminder that the following warranties are expiring in "
        f"<strong>{reminder_days} days</strong>:</p>"
        f"<ul>{items}</ul>"
        "<p>Log in to your eWarrants app to see the details.</p>"
    )
    return subject, body
