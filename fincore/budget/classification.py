"""
Category Classification

Maps ledger categories onto the needs / wants / savings buckets of a
percentage-of-income budget.

The table itself belongs to the storage collaborator
(find_category_classification); DEFAULT_CATEGORY_CLASSIFICATION is the
stock 50/30/20 table used when it has none.
"""

from typing import Mapping, Optional

from fincore.config import FinanceSettings, get_settings
from fincore.models.ledger import BudgetBucket

DEFAULT_CATEGORY_CLASSIFICATION: dict[str, BudgetBucket] = {
    # Needs
    "Groceries": BudgetBucket.NEEDS,
    "Rent/Mortgage": BudgetBucket.NEEDS,
    "Utilities": BudgetBucket.NEEDS,
    "Transportation": BudgetBucket.NEEDS,
    "Insurance": BudgetBucket.NEEDS,
    "Healthcare": BudgetBucket.NEEDS,
    # Wants
    "Entertainment": BudgetBucket.WANTS,
    "Dining Out": BudgetBucket.WANTS,
    "Shopping": BudgetBucket.WANTS,
    "Hobbies": BudgetBucket.WANTS,
    "Subscriptions": BudgetBucket.WANTS,
    "Travel": BudgetBucket.WANTS,
    # Savings
    "Savings": BudgetBucket.SAVINGS,
    "Investments": BudgetBucket.SAVINGS,
    "Emergency Fund": BudgetBucket.SAVINGS,
}


class CategoryClassifier:
    """
    Callable category -> bucket lookup.

    Categories missing from the table land in the fallback bucket
    (FINCORE_UNCLASSIFIED_BUCKET, "wants" by default).
    """

    def __init__(
        self,
        table: Optional[Mapping[str, BudgetBucket]] = None,
        fallback: Optional[BudgetBucket] = None,
        settings: Optional[FinanceSettings] = None,
    ):
        if fallback is None:
            settings = settings or get_settings().finance
            fallback = BudgetBucket(settings.unclassified_bucket)
        self._table = {
            name.strip(): BudgetBucket(bucket)
            for name, bucket in (table or DEFAULT_CATEGORY_CLASSIFICATION).items()
        }
        self._fallback = fallback

    @property
    def fallback(self) -> BudgetBucket:
        return self._fallback

    def __call__(self, category: str) -> BudgetBucket:
        return self._table.get(category.strip(), self._fallback)

    def categories_in(self, bucket: BudgetBucket) -> list[str]:
        """Known categories of one bucket, sorted."""
        return sorted(name for name, b in self._table.items() if b == bucket)
