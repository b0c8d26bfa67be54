from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from firefly_sankey.logger import get_logger
from firefly_sankey.models import SankeyOptions, TransactionSplit
from firefly_sankey.sankey.filters import is_candidate

logger = get_logger(__name__)

DEFAULT_CURRENCY = "USD"


@dataclass(frozen=True)
class DuplicateNames:
    """
    Names reused across roles within one build.

    ``accounts`` and ``categories`` hold names seen on both deposits and
    withdrawals; they get ``(+)``/``(-)`` suffixes. The ``*_conflicts`` sets
    hold names shared between the account, category and budget namespaces.
    """

    accounts: frozenset[str] = field(default_factory=frozenset)
    categories: frozenset[str] = field(default_factory=frozenset)
    account_conflicts: frozenset[str] = field(default_factory=frozenset)
    category_conflicts: frozenset[str] = field(default_factory=frozenset)
    budget_conflicts: frozenset[str] = field(default_factory=frozenset)


def identify_duplicates(
    splits: Iterable[TransactionSplit],
    options: SankeyOptions,
) -> DuplicateNames:
    revenue_accounts: set[str] = set()
    expense_accounts: set[str] = set()
    revenue_categories: set[str] = set()
    expense_categories: set[str] = set()
    budgets: set[str] = set()

    for split in splits:
        if not is_candidate(split, options):
            continue

        if split.type == "deposit":
            revenue_accounts.add(split.source_name)
            if split.category_name:
                revenue_categories.add(split.category_name)
        elif split.type == "withdrawal":
            expense_accounts.add(split.destination_name)
            if split.category_name:
                expense_categories.add(split.category_name)
            if split.budget_name:
                budgets.add(split.budget_name)

    all_accounts = revenue_accounts | expense_accounts
    all_categories = revenue_categories | expense_categories

    duplicates = DuplicateNames(
        accounts=frozenset(revenue_accounts & expense_accounts),
        categories=frozenset(revenue_categories & expense_categories),
        account_conflicts=frozenset(all_accounts & (budgets | all_categories)),
        category_conflicts=frozenset(all_categories & (all_accounts | budgets)),
        budget_conflicts=frozenset(budgets & (all_accounts | all_categories)),
    )
    if duplicates.accounts or duplicates.categories:
        logger.debug(
            "[SANKEY] Duplicate names: accounts=%s categories=%s",
            sorted(duplicates.accounts),
            sorted(duplicates.categories),
        )
    return duplicates


def most_common_currency(splits: Iterable[TransactionSplit]) -> str:
    """Currency used by the most splits; ties go to the first one seen."""
    counts = Counter(split.currency_code for split in splits)
    if not counts:
        return DEFAULT_CURRENCY
    # Counter keeps insertion order and most_common() sorts stably
    return counts.most_common(1)[0][0]
