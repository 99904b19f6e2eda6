"""Async client for the budget API.

Each fetcher issues exactly one GET and either returns parsed domain rows or
raises ``FetchError``. Fetchers that need a bearer token raise
``MissingCredential`` before touching the network when none is given.
"""

import logging
from typing import Any, Callable, Optional

import httpx

from pennywise.config import API_BASE_URL, CATEGORIES_PATH
from pennywise.domain import (
    BudgetDraft,
    Category,
    CategoryBudget,
    OverallBudget,
    Transaction,
    TransactionDraft,
)
from pennywise.errors import FetchError, MissingCredential, MutationError

logger = logging.getLogger(__name__)

TRANSACTIONS = "transactions"
BUDGETS = "budgets"
OVERALL_BUDGET = "overall_budget"
CATEGORIES = "categories"

RESOURCES = (TRANSACTIONS, BUDGETS, OVERALL_BUDGET, CATEGORIES)

FAILURE_MESSAGES = {
    TRANSACTIONS: "Failed to fetch transactions",
    BUDGETS: "Failed to fetch category budgets",
    OVERALL_BUDGET: "Failed to fetch overall budget",
    CATEGORIES: "Failed to fetch categories",
}

CREATE_TRANSACTION = "create_transaction"
CREATE_BUDGET = "create_budget"


def _error_message(response: httpx.Response, default: str) -> str:
    """Prefer the server's ``{"error": ...}`` text over a generic message."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return default


def _parse_rows(resource: str, data: Any, parse: Callable[[Any], Any]) -> tuple:
    if data is None:
        return ()
    if not isinstance(data, list):
        raise FetchError(resource, f"Unexpected {resource} payload")
    try:
        return tuple(parse(row) for row in data)
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        raise FetchError(resource, f"Malformed {resource} row: {e}") from e


class DashboardApi:
    """Thin wrapper over ``httpx.AsyncClient``.

    A client is opened per call so the same instance can be driven from
    successive event loops (Streamlit runs each interaction in a fresh one).
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        categories_path: str = CATEGORIES_PATH,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.categories_path = categories_path
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, transport=self.transport)

    @staticmethod
    def _headers(token: Optional[str]) -> dict:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _get(self, resource: str, path: str, token: Optional[str]) -> Any:
        default = FAILURE_MESSAGES[resource]
        logger.debug(f"GET {path} for {resource}")
        try:
            async with self._client() as client:
                response = await client.get(path, headers=self._headers(token))
        except httpx.HTTPError as e:
            raise FetchError(resource, f"{default}: {e}") from e

        if not response.is_success:
            raise FetchError(resource, _error_message(response, default), response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(resource, f"{default}: invalid JSON body", response.status_code) from e

    async def _post(self, action: str, path: str, token: Optional[str], payload: dict) -> Any:
        if not token:
            raise MissingCredential(action)
        default = f"Failed to {action.replace('_', ' ')}"
        try:
            async with self._client() as client:
                response = await client.post(path, headers=self._headers(token), json=payload)
        except httpx.HTTPError as e:
            raise MutationError(action, f"{default}: {e}") from e

        if not response.is_success:
            raise MutationError(action, _error_message(response, default), response.status_code)
        try:
            return response.json()
        except ValueError:
            return None

    async def fetch_transactions(self, token: Optional[str]) -> tuple[Transaction, ...]:
        if not token:
            raise MissingCredential(TRANSACTIONS)
        data = await self._get(TRANSACTIONS, "/api/transactions", token)
        return _parse_rows(TRANSACTIONS, data, Transaction.from_json)

    async def fetch_category_budgets(self, token: Optional[str]) -> tuple[CategoryBudget, ...]:
        if not token:
            raise MissingCredential(BUDGETS)
        data = await self._get(BUDGETS, "/api/budgets", token)
        return _parse_rows(BUDGETS, data, CategoryBudget.from_json)

    async def fetch_overall_budget(self, token: Optional[str]) -> Optional[OverallBudget]:
        if not token:
            raise MissingCredential(OVERALL_BUDGET)
        data = await self._get(OVERALL_BUDGET, "/api/budgets/overall", token)
        if data is None:
            return None
        if not isinstance(data, dict):
            raise FetchError(OVERALL_BUDGET, "Unexpected overall budget payload")
        try:
            return OverallBudget.from_json(data)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise FetchError(OVERALL_BUDGET, f"Malformed overall budget: {e}") from e

    async def fetch_categories(self, token: Optional[str] = None) -> tuple[Category, ...]:
        # category listing does not require auth; the token is forwarded when present
        data = await self._get(CATEGORIES, self.categories_path, token)
        return _parse_rows(CATEGORIES, data, Category.from_json)

    async def create_transaction(self, token: Optional[str], draft: TransactionDraft) -> Any:
        body = await self._post(CREATE_TRANSACTION, "/api/transactions", token, draft.to_payload())
        logger.info(f"Created transaction in category {draft.category_id}")
        return body

    async def create_budget(self, token: Optional[str], draft: BudgetDraft) -> Any:
        body = await self._post(CREATE_BUDGET, "/api/budgets", token, draft.to_payload())
        logger.info(f"Created budget for category {draft.category_id}")
        return body
