from .ledger import UserLedger, apply_counters, find_by_id, find_by_username
from .models import PromotionResult, UserRecord
from .password import hash_password, needs_rehash, verify_password

__all__ = [
    "UserLedger",
    "apply_counters",
    "find_by_id",
    "find_by_username",
    "PromotionResult",
    "UserRecord",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
