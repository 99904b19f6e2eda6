import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

UNKNOWN_CATEGORY = "Unknown Category"
OVERALL_HEADING = "Overall Monthly Budget"

_LONG_FRACTION = re.compile(r"(\.\d{6})\d+")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() first so floats like 12.1 do not carry binary noise
    return Decimal(str(value))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an RFC3339 timestamp as sent by the API.

    Go marshals nanosecond precision; anything past microseconds is dropped.
    """
    if value is None or isinstance(value, datetime):
        return value
    text = _LONG_FRACTION.sub(r"\1", str(value))
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class Category:
    id: int
    name: str

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Category":
        return cls(id=int(data["id"]), name=str(data["name"]))


@dataclass(frozen=True)
class Transaction:
    id: int
    category_name: str
    amount: Decimal
    transaction_date: Optional[datetime]
    description: Optional[str] = None  # absent on some rows

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Transaction":
        return cls(
            id=int(data["id"]),
            category_name=data.get("category_name") or "",
            amount=to_decimal(data.get("amount")),
            transaction_date=parse_timestamp(data.get("transaction_date")),
            description=data.get("description") or None,
        )


@dataclass(frozen=True)
class CategoryBudget:
    id: int
    category_id: int
    amount_limit: Decimal
    spent_amount: Decimal
    remaining_amount: Decimal

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "CategoryBudget":
        return cls(
            id=int(data["id"]),
            category_id=int(data["category_id"]),
            amount_limit=to_decimal(data.get("amount_limit")),
            spent_amount=to_decimal(data.get("spent_amount")),
            remaining_amount=to_decimal(data.get("remaining_amount")),
        )


# At most one per user, so it carries no id
@dataclass(frozen=True)
class OverallBudget:
    amount_limit: Decimal
    spent_amount: Decimal
    remaining_amount: Decimal

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "OverallBudget":
        return cls(
            amount_limit=to_decimal(data.get("amount_limit")),
            spent_amount=to_decimal(data.get("spent_amount")),
            remaining_amount=to_decimal(data.get("remaining_amount")),
        )


@dataclass(frozen=True)
class TransactionDraft:
    """What the add-transaction form submits."""
    category_id: int
    amount: Decimal
    transaction_date: datetime
    description: str = ""

    def to_payload(self) -> dict:
        when = self.transaction_date
        if when.tzinfo is None:
            stamp = when.strftime("%Y-%m-%dT%H:%M:%SZ")
        else:
            stamp = when.isoformat(timespec="seconds")
        return {
            "category_id": self.category_id,
            "amount": float(self.amount),
            "description": self.description,
            "transaction_date": stamp,
        }


@dataclass(frozen=True)
class BudgetDraft:
    """What the add-budget form submits. category_id None means the overall budget."""
    category_id: Optional[int]
    amount_limit: Decimal

    def to_payload(self) -> dict:
        return {"category_id": self.category_id, "amount_limit": float(self.amount_limit)}


@dataclass(frozen=True)
class BudgetCard:
    key: Any
    total: Decimal
    spent: Decimal
    remaining: Decimal
    heading: str


@dataclass(frozen=True)
class ViewState:
    loading: bool = False
    errors: Mapping[str, str] = field(default_factory=dict)  # resource -> message
    notice: Optional[str] = None
    show_all: bool = False
    show_add_transaction_form: bool = False
    show_add_budget_form: bool = False

    @property
    def error(self) -> Optional[str]:
        """Most recently recorded fetch error, if any."""
        if not self.errors:
            return None
        return list(self.errors.values())[-1]


@dataclass(frozen=True)
class DashboardView:
    loading: bool
    error: Optional[str]
    errors: Mapping[str, str]
    notice: Optional[str]
    overall_card: Optional[BudgetCard]
    budget_cards: tuple[BudgetCard, ...]
    visible_transactions: tuple[Transaction, ...]
    show_add_transaction_form: bool
    show_add_budget_form: bool
    show_all: bool
    can_show_more: bool
