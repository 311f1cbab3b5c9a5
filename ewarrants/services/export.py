"""保証レコードの CSV エクスポート"""

from __future__ import annotations

import csv
import datetime
import io
import logging

from ewarrants.domain import expiry
from ewarrants.domain.errors import NotFoundError
from ewarrants.domain.models import Warranty
from ewarrants.services.warranty_store import WarrantyStore

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "eWarrants_Export.csv"

EXPORT_COLUMNS = (
    "Product Name",
    "Category",
    "Purchase Date",
    "Warranty Length (Months)",
    "Expiry Date",
    "Description",
    "Receipt URLs",
)


def format_export_date(value: datetime.date) -> str:
    """エクスポート用の日付表記（M/D/YYYY）"""
    return f"{value.month}/{value.day}/{value.year}"


def warranty_to_row(warranty: Warranty) -> dict[str, str]:
    """1レコード → CSV 1行"""
    return {
        "Product Name": warranty.product_name,
        "Category": warranty.category or "N/A",
        "Purchase Date": format_export_date(warranty.purchase_date),
        "Warranty Length (Months)": str(warranty.warranty_length_months),
        "Expiry Date": format_export_date(expiry.warranty_expiry(warranty)),
        "Description": warranty.description or "",
        "Receipt URLs": ", ".join(r.url for r in warranty.receipts),
    }


def export_warranties_csv(store: WarrantyStore, owner: str) -> str:
    """
    所有者の全レコードを CSV 文字列にする。

    Raises:
        NotFoundError: レコードが1件もない場合（空ファイルは返さない）
    """
    warranties = store.list_by_owner(owner)
    if not warranties:
        raise NotFoundError("No warranties found to export.")

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for warranty in warranties:
        writer.writerow(warranty_to_row(warranty))

    logger.info("Exported warranties: owner=%s, rows=%d", owner, len(warranties))
    return buf.getvalue()
