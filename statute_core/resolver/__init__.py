from .pacing import BudgetExhausted, CallBudget, Pacer
from .traversal import DivisionTraversal
from .cache_first import CacheFirstResolver, Outcome, Resolution

__all__ = [
    "BudgetExhausted",
    "CallBudget",
    "Pacer",
    "DivisionTraversal",
    "CacheFirstResolver",
    "Outcome",
    "Resolution",
]
