"""Domain layer - 外部依存なしのドメインモデルとインターフェース定義"""

from ewarrants.domain.errors import (
    ConflictError,
    EWarrantsError,
    NotFoundError,
    UnauthorizedError,
    UpstreamError,
    ValidationError,
)
from ewarrants.domain.models import (
    SUGGESTED_CATEGORIES,
    ChatReply,
    EmailNotificationSettings,
    Receipt,
    ReceiptExtraction,
    ReminderRunSummary,
    SortOrder,
    User,
    Warranty,
    WarrantyDraft,
)
from ewarrants.domain.ports import (
    AccountAuthenticator,
    BlobStorage,
    Mailer,
    ProductImageSearch,
    ReceiptAnalyzer,
    UserRepository,
    WarrantyAssistant,
    WarrantyRepository,
)

__all__ = [
    # Models
    "SUGGESTED_CATEGORIES",
    "SortOrder",
    "Receipt",
    "WarrantyDraft",
    "Warranty",
    "EmailNotificationSettings",
    "User",
    "ReceiptExtraction",
    "ChatReply",
    "ReminderRunSummary",
    # Errors
    "EWarrantsError",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ConflictError",
    "UpstreamError",
    # Ports
    "WarrantyRepository",
    "UserRepository",
    "BlobStorage",
    "Mailer",
    "ReceiptAnalyzer",
    "WarrantyAssistant",
    "ProductImageSearch",
    "AccountAuthenticator",
]
