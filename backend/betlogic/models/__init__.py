"""SQLAlchemy models exposed by the backend."""
from .activity import Bet, Task
from .base import Base
from .ledger import Account, Transaction
from .promotion import Promotion, PromotionAssignment, PromotionStep, UserPromotionProgress
from .user import User

__all__ = [
    "Account",
    "Base",
    "Bet",
    "Promotion",
    "PromotionAssignment",
    "PromotionStep",
    "Task",
    "Transaction",
    "User",
    "UserPromotionProgress",
]
