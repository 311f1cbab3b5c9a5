"""期限切れリマインダー - 日次ジョブとプロセス内スケジューラ

ExpiryReminderJob:
  メール通知を有効にした全ユーザーについて「今日 + reminder_days」に
  期限を迎える保証を検索し、該当があれば1通のメールを送る。

DailyReminderScheduler:
  固定タイムゾーンの固定時刻に ExpiryReminderJob を起動する asyncio タスク。
  プロセス内で1つだけ起動できる（二重起動は SchedulerAlreadyRunningError）。

処理フロー（1回の起動）:
  1. UserRepository から通知有効ユーザーを取得
  2. ユーザーごとに独立して検索・送信（ワーカースレッド + タイムアウト）
  3. 失敗・タイムアウトはログに記録して次のユーザーへ進む
"""

from __future__ import annotations

import asyncio
import datetime
import logging
import threading
from collections.abc import Callable
from zoneinfo import ZoneInfo

from ewarrants.domain.models import ReminderRunSummary, User
from ewarrants.domain.ports import Mailer, UserRepository
from ewarrants.services.email_templates import build_expiry_reminder
from ewarrants.services.warranty_store import WarrantyStore

logger = logging.getLogger(__name__)


class SchedulerAlreadyRunningError(RuntimeError):
    """同一プロセスでスケジューラを二重起動しようとした"""


class ExpiryReminderJob:
    """
    リマインダーメール送信ジョブ（1回分）。

    結果は呼び出し元に返さない前提の fire-and-forget 処理だが、
    ログ出力と worker エンドポイントのレスポンス用に集計を返す。
    """

    def __init__(
        self,
        users: UserRepository,
        store: WarrantyStore,
        mailer: Mailer,
        per_user_timeout: float = 30.0,
    ) -> None:
        """
        Args:
            users: ユーザーリポジトリ
            store: 保証レコードストア
            mailer: メール送信アダプタ
            per_user_timeout: 1ユーザーあたりの処理上限（秒）
        """
        self._users = users
        self._store = store
        self._mailer = mailer
        self._per_user_timeout = per_user_timeout

    async def run(self, today: datetime.date) -> ReminderRunSummary:
        """
        today を基準日としてリマインダーを送信する。

        Args:
            today: スケジューラの基準タイムゾーンでの今日の日付
        """
        logger.info("Expiry reminder run started: today=%s", today.isoformat())
        users = await asyncio.to_thread(self._users.list_notification_enabled)

        sent = 0
        errors = 0
        for user in users:
            try:
                delivered = await asyncio.wait_for(
                    asyncio.to_thread(self._process_user, user, today),
                    timeout=self._per_user_timeout,
                )
            except asyncio.TimeoutError:
                logger.error(
                    "Expiry reminder timed out: uid=%s, timeout=%.1fs",
                    user.id,
                    self._per_user_timeout,
                )
                errors += 1
                continue
            except Exception:
                logger.exception("Expiry reminder failed: uid=%s", user.id)
                errors += 1
                continue
            if delivered:
                sent += 1

        summary = ReminderRunSummary(users=len(users), sent=sent, errors=errors)
        logger.info(
            "Expiry reminder run complete: users=%d, sent=%d, errors=%d",
            summary.users,
            summary.sent,
            summary.errors,
        )
        return summary

    def _process_user(self, user: User, today: datetime.date) -> bool:
        """1ユーザー分の検索と送信。メールを送った場合は True"""
        reminder_days = user.email_notifications.reminder_days
        target = today + datetime.timedelta(days=reminder_days)
        expiring = self._store.find_expiring_on(user.id, target)
        if not expiring:
            return False

        product_names = [w.product_name for w in expiring]
        logger.info(
            "Sending expiry email: uid=%s, target=%s, products=%d",
            user.id,
            target.isoformat(),
            len(product_names),
        )
        subject, html_body = build_expiry_reminder(
            user.display_name or user.email, reminder_days, product_names
        )
        self._mailer.send(user.email, subject, html_body)
        return True


class DailyReminderScheduler:
    """
    1日1回、固定時刻に ExpiryReminderJob を起動するスケジューラ。

    ジョブはリクエスト処理と状態を共有せず、ストアの公開メソッドだけを使う。
    デプロイ単位で1インスタンスのみ動かすこと（プロセス内の二重起動は拒否する）。
    """

    _lock = threading.Lock()
    _running: "DailyReminderScheduler | None" = None

    def __init__(
        self,
        job_factory: Callable[[], ExpiryReminderJob],
        fire_at: datetime.time,
        tz: ZoneInfo,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        """
        Args:
            job_factory: 起動のたびに ExpiryReminderJob を組み立てる関数
            fire_at: 起動時刻（tz における壁時計時刻）
            tz: 基準タイムゾーン
            clock: 現在時刻を返す関数（テスト用）
        """
        self._job_factory = job_factory
        self._fire_at = fire_at
        self._tz = tz
        self._clock = clock or (lambda: datetime.datetime.now(datetime.timezone.utc))
        self._task: asyncio.Task | None = None
        self._last_fired: datetime.date | None = None

    def start(self) -> asyncio.Task:
        """
        バックグラウンドタスクを起動する。実行中のイベントループ内で呼ぶこと。

        Raises:
            SchedulerAlreadyRunningError: 既に別のスケジューラが動いている場合
        """
        with DailyReminderScheduler._lock:
            if DailyReminderScheduler._running is not None:
                raise SchedulerAlreadyRunningError(
                    "Expiry reminder scheduler is already running in this process"
                )
            DailyReminderScheduler._running = self
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info(
            "Expiry reminder scheduler started: fire_at=%s, tz=%s",
            self._fire_at.strftime("%H:%M"),
            self._tz.key,
        )
        return self._task

    async def stop(self) -> None:
        """タスクを停止し、シングルトンの登録を解除する"""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        with DailyReminderScheduler._lock:
            if DailyReminderScheduler._running is self:
                DailyReminderScheduler._running = None
        logger.info("Expiry reminder scheduler stopped")

    def next_fire_time(self, now: datetime.datetime) -> datetime.datetime:
        """now より後の最初の起動時刻（tz 付き）を返す"""
        local_now = now.astimezone(self._tz)
        candidate = datetime.datetime.combine(
            local_now.date(), self._fire_at, tzinfo=self._tz
        )
        if candidate <= local_now:
            candidate = datetime.datetime.combine(
                local_now.date() + datetime.timedelta(days=1),
                self._fire_at,
                tzinfo=self._tz,
            )
        return candidate

    async def _loop(self) -> None:
        while True:
            now = self._clock()
            fire_time = self.next_fire_time(now)
            # 壁時計が戻っても同じ日に2回起動しない
            if self._last_fired is not None and fire_time.date() <= self._last_fired:
                fire_time = datetime.datetime.combine(
                    self._last_fired + datetime.timedelta(days=1),
                    self._fire_at,
                    tzinfo=self._tz,
                )
            delay = (fire_time - now).total_seconds()
            logger.debug("Next expiry reminder run at %s", fire_time.isoformat())
            await asyncio.sleep(max(delay, 0))
            self._last_fired = fire_time.date()
            await self.run_once(fire_time.date())

    async def run_once(self, today: datetime.date) -> ReminderRunSummary | None:
        """1回分のジョブを実行する。例外はログに記録してループを継続させる"""
        try:
            return await self._job_factory().run(today)
        except Exception:
            logger.exception("Expiry reminder run failed: today=%s", today.isoformat())
            return None
