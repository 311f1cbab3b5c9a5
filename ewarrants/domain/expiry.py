"""保証期限の計算 - 純粋関数のみ

期限日 = 購入日 + 保証期間（暦月）。
月末の日付は加算先の月の末日に丸める（例: 2024-01-31 + 1ヶ月 = 2024-02-29）。
期限日は保存せず、常に purchase_date と warranty_length_months から再計算する。
"""

from __future__ import annotations

import calendar
import datetime
from zoneinfo import ZoneInfo

from ewarrants.domain.models import Warranty


def add_months(start: datetime.date, months: int) -> datetime.date:
    """暦月を加算する。日が加算先の月に存在しない場合は月末に丸める"""
    if months < 0:
        raise ValueError(f"months must be >= 0: {months}")
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, min(start.day, last_day))


def expiry_date(purchase_date: datetime.date, length_months: int) -> datetime.date:
    """購入日と保証期間（月）から期限日を求める"""
    return add_months(purchase_date, length_months)


def warranty_expiry(warranty: Warranty) -> datetime.date:
    return expiry_date(warranty.purchase_date, warranty.warranty_length_months)


def is_expiring_on(warranty: Warranty, target: datetime.date) -> bool:
    """期限日が target と同じ日か（日単位で比較）"""
    return warranty_expiry(warranty) == _as_date(target)


def is_expiring_within(
    warranty: Warranty, from_date: datetime.date, to_date: datetime.date
) -> bool:
    """期限日が [from_date, to_date] に入るか（両端を含む）"""
    return _as_date(from_date) <= warranty_expiry(warranty) <= _as_date(to_date)


def today_in(tz: ZoneInfo, now: datetime.datetime | None = None) -> datetime.date:
    """基準タイムゾーンでの「今日」を返す"""
    current = now or datetime.datetime.now(datetime.timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=datetime.timezone.utc)
    return current.astimezone(tz).date()


def _as_date(value: datetime.date) -> datetime.date:
    # datetime は date のサブクラスなので時刻を切り捨てる
    if isinstance(value, datetime.datetime):
        return value.date()
    return value
