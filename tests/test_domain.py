from datetime import datetime, timezone
from decimal import Decimal

import pytest

from pennywise.domain import (
    BudgetDraft, Category, CategoryBudget, OverallBudget, Transaction,
    TransactionDraft, ViewState, parse_timestamp, to_decimal,
)


def test_transaction_from_api_row():
    row = {
        "id": 3,
        "user_id": 1,
        "category_id": 2,
        "category_name": "Groceries",
        "amount": 12.1,
        "description": "Milk",
        "transaction_date": "2024-10-05T09:30:00Z",
    }
    t = Transaction.from_json(row)
    assert t.id == 3
    assert t.category_name == "Groceries"
    assert t.amount == Decimal("12.1")
    assert t.description == "Milk"
    assert t.transaction_date == datetime(2024, 10, 5, 9, 30, tzinfo=timezone.utc)


def test_transaction_without_description():
    t = Transaction.from_json({"id": 1, "category_name": "Rent", "amount": 900, "description": "",
                               "transaction_date": "2024-10-01T00:00:00Z"})
    assert t.description is None


def test_parse_timestamp_nanoseconds():
    ts = parse_timestamp("2024-10-05T09:30:00.123456789-04:00")
    assert ts.microsecond == 123456
    assert ts.utcoffset().total_seconds() == -4 * 3600
    assert parse_timestamp(None) is None


def test_to_decimal():
    assert to_decimal(None) == Decimal("0")
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("5.25") == Decimal("5.25")


def test_budget_rows_from_json():
    b = CategoryBudget.from_json({"id": 4, "category_id": 2, "amount_limit": 300,
                                  "spent_amount": 120.5, "remaining_amount": 179.5})
    assert b.category_id == 2
    assert b.remaining_amount == Decimal("179.5")

    o = OverallBudget.from_json({"amount_limit": 1000, "spent_amount": 0, "remaining_amount": 1000})
    assert o.amount_limit == Decimal("1000")


def test_category_from_json():
    assert Category.from_json({"id": "7", "name": "Travel"}) == Category(7, "Travel")


def test_category_requires_name():
    with pytest.raises(KeyError):
        Category.from_json({"id": 1})


def test_transaction_draft_payload():
    draft = TransactionDraft(category_id=2, amount=Decimal("15.50"),
                             transaction_date=datetime(2024, 10, 5), description="Lunch")
    assert draft.to_payload() == {
        "category_id": 2,
        "amount": 15.5,
        "description": "Lunch",
        "transaction_date": "2024-10-05T00:00:00Z",
    }


def test_transaction_draft_payload_with_timezone():
    when = datetime(2024, 10, 5, 8, 0, tzinfo=timezone.utc)
    draft = TransactionDraft(category_id=2, amount=Decimal("1"), transaction_date=when)
    assert draft.to_payload()["transaction_date"] == "2024-10-05T08:00:00+00:00"


def test_budget_draft_payload_overall():
    assert BudgetDraft(None, Decimal("2500")).to_payload() == {"category_id": None, "amount_limit": 2500.0}


def test_view_state_latest_error():
    assert ViewState().error is None
    state = ViewState(errors={"budgets": "Failed to fetch category budgets", "transactions": "No token found"})
    assert state.error == "No token found"
