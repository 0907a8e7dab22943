"""Budget allocation package."""

from fincore.budget.allocator import allocate, analyze, income_total, summarize_month
from fincore.budget.classification import (
    DEFAULT_CATEGORY_CLASSIFICATION,
    CategoryClassifier,
)

__all__ = [
    "DEFAULT_CATEGORY_CLASSIFICATION",
    "CategoryClassifier",
    "allocate",
    "analyze",
    "income_total",
    "summarize_month",
]
