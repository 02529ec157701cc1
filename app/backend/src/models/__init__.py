"""ORM models exposed for easy imports."""

from .account_request import AccountRequest
from .activity_log import ActivityLog
from .affiliate import Affiliate
from .cash_call import CashCall
from .document import Document
from .user import User

__all__ = [
    "AccountRequest",
    "ActivityLog",
    "Affiliate",
    "CashCall",
    "Document",
    "User",
]
