from typing import Iterable, Mapping, Optional, Sequence

import pandas as pd

from pennywise.config import VISIBLE_TRANSACTIONS
from pennywise.domain import (
    OVERALL_HEADING,
    UNKNOWN_CATEGORY,
    BudgetCard,
    Category,
    CategoryBudget,
    OverallBudget,
    Transaction,
)


def build_index(categories: Optional[Iterable[Category]]) -> dict[int, str]:
    """Map category id to display name. Always a fresh dict, never merged."""
    return {c.id: c.name for c in (categories or ())}


def compose_budget_cards(
    category_budgets: Optional[Iterable[CategoryBudget]], index: Mapping[int, str]
) -> tuple[BudgetCard, ...]:
    return tuple(
        BudgetCard(
            key=b.id,
            total=b.amount_limit,
            spent=b.spent_amount,
            remaining=b.remaining_amount,
            heading=index.get(b.category_id, UNKNOWN_CATEGORY),
        )
        for b in (category_budgets or ())
    )


def compose_overall_card(overall: Optional[OverallBudget]) -> Optional[BudgetCard]:
    if overall is None:
        return None
    return BudgetCard(
        key="overall",
        total=overall.amount_limit,
        spent=overall.spent_amount,
        remaining=overall.remaining_amount,
        heading=OVERALL_HEADING,
    )


def compose_visible_transactions(
    transactions: Optional[Sequence[Transaction]],
    show_all: bool,
    reveal_all: bool = False,
    limit: int = VISIBLE_TRANSACTIONS,
) -> tuple[Transaction, ...]:
    """Slice of the snapshot the table shows.

    By default the first ``limit`` rows are shown whether or not ``show_all``
    is set. With ``reveal_all`` the whole list is shown once ``show_all`` is on.
    """
    rows = tuple(transactions or ())
    if show_all and reveal_all:
        return rows
    return rows[:limit]


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = [
        {
            "Transaction ID": t.id,
            "Category": t.category_name,
            "Amount": f"{t.amount:.2f}",
            "Description": t.description or "N/A",
            "Transaction Date": pd.to_datetime(t.transaction_date),
        }
        for t in transactions
    ]
    columns = ["Transaction ID", "Category", "Amount", "Description", "Transaction Date"]
    return pd.DataFrame(rows, columns=columns)


def budget_frame(cards: Iterable[BudgetCard]) -> pd.DataFrame:
    rows = [
        {
            "Category": c.heading,
            "Limit": float(c.total),
            "Spent": float(c.spent),
            "Remaining": float(c.remaining),
        }
        for c in cards
    ]
    return pd.DataFrame(rows, columns=["Category", "Limit", "Spent", "Remaining"])
