"""Services layer - ドメインのユースケース"""

from ewarrants.services.account import AccountService
from ewarrants.services.chat import ChatService, WarrantyQuery, WarrantyQueryBridge
from ewarrants.services.receipts import ReceiptProcessor
from ewarrants.services.reminders import DailyReminderScheduler, ExpiryReminderJob
from ewarrants.services.warranty_store import WarrantyStore

__all__ = [
    "AccountService",
    "ChatService",
    "DailyReminderScheduler",
    "ExpiryReminderJob",
    "ReceiptProcessor",
    "WarrantyQuery",
    "WarrantyQueryBridge",
    "WarrantyStore",
]
