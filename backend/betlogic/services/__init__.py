"""Domain services operating on an injected AsyncSession."""
from .ledger import LedgerEngine
from .promotions import PromotionCatalog, PromotionProgressEngine

__all__ = ["LedgerEngine", "PromotionCatalog", "PromotionProgressEngine"]
