"""チャット問い合わせ - getWarranties ツールと応答の組み立て

LLM（WarrantyAssistant）には getWarranties ツールを1つだけ公開する。
ツール引数は2種類の固定クエリのどちらかに変換される:

  - expiringWithinDays あり → 今日〜今日+N日 に期限を迎えるレコード
  - それ以外               → category の部分一致（大文字小文字無視）+ 購入日ソート

sortBy が明示された場合、返却データは先頭1件に絞る（「並べて」ではなく
「一番のものを」と解釈する）。LLM には絞り込み前の全件を渡すため、
応答文とデータが食い違うことがある。
"""

from __future__ import annotations

import dataclasses
import datetime
import logging
from zoneinfo import ZoneInfo

from ewarrants.domain import expiry
from ewarrants.domain.errors import ValidationError
from ewarrants.domain.models import ChatReply, SortOrder, Warranty
from ewarrants.domain.ports import WarrantyAssistant
from ewarrants.services.warranty_store import WarrantyStore, sort_by_purchase_date

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class WarrantyQuery:
    """getWarranties ツールの引数"""

    category: str | None = None
    expiring_within_days: int | None = None
    sort_by: SortOrder | None = None
    sort_requested: bool = False

    @classmethod
    def from_tool_args(cls, args: dict) -> "WarrantyQuery":
        """LLM が返した引数 dict を変換する（未知のソート値は降順扱い）"""
        category = args.get("category") or None
        days = args.get("expiringWithinDays")
        raw_sort = args.get("sortBy")

        sort_by = None
        if raw_sort:
            try:
                sort_by = SortOrder(raw_sort)
            except ValueError:
                logger.warning("Unknown sortBy from assistant: %s", raw_sort)
                sort_by = SortOrder.PURCHASE_DATE_DESC

        expiring_within_days = None
        if days is not None:
            try:
                expiring_within_days = int(days)
            except (TypeError, ValueError, OverflowError) as e:
                raise ValidationError(
                    "expiringWithinDays must be a number",
                    errors=[
                        {"field": "expiringWithinDays", "message": "must be a number"}
                    ],
                ) from e

        return cls(
            category=str(category) if category else None,
            expiring_within_days=expiring_within_days,
            sort_by=sort_by,
            sort_requested=bool(raw_sort),
        )


class WarrantyQueryBridge:
    """getWarranties ツールの実装（所有者スコープ）"""

    def __init__(self, store: WarrantyStore) -> None:
        self._store = store

    def get_warranties(
        self, owner: str, query: WarrantyQuery, today: datetime.date
    ) -> list[Warranty]:
        """ツール引数に従って全件を返す（絞り込み前）"""
        if query.expiring_within_days is not None:
            if query.expiring_within_days < 0:
                raise ValidationError(
                    "expiringWithinDays must be >= 0",
                    errors=[
                        {
                            "field": "expiringWithinDays",
                            "message": "must be a non-negative number",
                        }
                    ],
                )
            to_date = today + datetime.timedelta(days=query.expiring_within_days)
            return self._store.find_expiring_within(owner, today, to_date)

        records = self._store.list_by_owner(owner)
        if query.category:
            needle = query.category.casefold()
            records = [
                w for w in records if w.category and needle in w.category.casefold()
            ]
        descending = query.sort_by != SortOrder.PURCHASE_DATE_ASC
        return sort_by_purchase_date(records, descending=descending)

    @staticmethod
    def shape_data(query: WarrantyQuery, records: list[Warranty]) -> list[Warranty]:
        """sortBy が明示されていれば先頭1件に絞る"""
        if query.sort_requested and records:
            return records[:1]
        return records


class ChatService:
    """
    チャット1往復の処理。

    WarrantyAssistant にツール実行関数を渡し、LLM がツールを呼んだ場合は
    最後のツール結果を返却データとする。
    """

    def __init__(
        self, assistant: WarrantyAssistant, store: WarrantyStore, tz: ZoneInfo
    ) -> None:
        """
        Args:
            assistant: ツール呼び出し対応の LLM アダプタ
            store: 保証レコードストア
            tz: 「今日」を決める基準タイムゾーン
        """
        self._assistant = assistant
        self._bridge = WarrantyQueryBridge(store)
        self._tz = tz

    def reply(self, owner: str, message: str, history: list[dict]) -> ChatReply:
        """
        ユーザー発話に応答する。

        Raises:
            ValidationError: message が空の場合
        """
        if not message or not message.strip():
            raise ValidationError(
                "Message is required.",
                errors=[{"field": "message", "message": "Message is required."}],
            )

        today = expiry.today_in(self._tz)
        calls: list[tuple[WarrantyQuery, list[Warranty]]] = []

        def _handle(args: dict) -> list[dict]:
            query = WarrantyQuery.from_tool_args(args)
            records = self._bridge.get_warranties(owner, query, today)
            calls.append((query, records))
            logger.info(
                "getWarranties called: owner=%s, category=%s, days=%s, sort=%s, hits=%d",
                owner,
                query.category,
                query.expiring_within_days,
                query.sort_by.value if query.sort_by else None,
                len(records),
            )
            return [warranty_to_tool_payload(w) for w in records]

        text = self._assistant.converse(message, history, today, _handle)

        if not calls:
            return ChatReply(response=text, data=[])
        query, records = calls[-1]
        return ChatReply(response=text, data=self._bridge.shape_data(query, records))


def warranty_to_tool_payload(warranty: Warranty) -> dict:
    """LLM に返すレコード表現（JSON 化可能な dict）"""
    return {
        "id": warranty.id,
        "productName": warranty.product_name,
        "purchaseDate": warranty.purchase_date.isoformat(),
        "warrantyLengthMonths": warranty.warranty_length_months,
        "expiryDate": expiry.warranty_expiry(warranty).isoformat(),
        "category": warranty.category,
        "description": warranty.description,
    }
