import asyncio
import logging
from dataclasses import replace
from typing import Optional

from pennywise import config
from pennywise.api import (
    BUDGETS,
    CATEGORIES,
    CREATE_BUDGET,
    CREATE_TRANSACTION,
    OVERALL_BUDGET,
    RESOURCES,
    TRANSACTIONS,
)
from pennywise.credentials import CredentialProvider, require_token
from pennywise.domain import (
    BudgetDraft,
    Category,
    CategoryBudget,
    DashboardView,
    OverallBudget,
    Transaction,
    TransactionDraft,
    ViewState,
)
from pennywise.errors import FetchError, MissingCredential, MutationError
from pennywise.events import (
    BUDGET_CREATED,
    FETCH_FAILED,
    MUTATION_FAILED,
    TRANSACTION_CREATED,
    TRANSACTION_DELETE_REQUESTED,
    EventBus,
)
from pennywise.transforms import (
    build_index,
    compose_budget_cards,
    compose_overall_card,
    compose_visible_transactions,
)

logger = logging.getLogger(__name__)

_TOKEN_FETCHERS = {
    TRANSACTIONS: "fetch_transactions",
    BUDGETS: "fetch_category_budgets",
    OVERALL_BUDGET: "fetch_overall_budget",
}


class DashboardController:
    """Owns the dashboard's view state and the fetched snapshots.

    ``api`` provides the four fetchers and the two create calls,
    ``credentials`` the bearer token, ``bus`` receives failure and intent
    notifications. Every snapshot starts as ``None`` (not loaded) and is
    replaced wholesale by each successful fetch.
    """

    def __init__(
        self,
        api,
        credentials: CredentialProvider,
        bus: Optional[EventBus] = None,
        reveal_all_on_show_more: bool = config.REVEAL_ALL_ON_SHOW_MORE,
        refresh_budgets_on_create: bool = config.REFRESH_BUDGETS_ON_CREATE,
    ):
        self.api = api
        self.credentials = credentials
        self.bus = bus if bus is not None else EventBus()
        self.reveal_all_on_show_more = reveal_all_on_show_more
        self.refresh_budgets_on_create = refresh_budgets_on_create

        self.state = ViewState()
        self.transactions: Optional[tuple[Transaction, ...]] = None
        self.category_budgets: Optional[tuple[CategoryBudget, ...]] = None
        self.overall_budget: Optional[OverallBudget] = None
        self.categories: Optional[tuple[Category, ...]] = None
        self.category_index: dict[int, str] = {}

        self._inflight: dict[str, asyncio.Task] = {}
        self._active = False

    # -- lifecycle --------------------------------------------------------

    async def activate(self) -> None:
        """Fetch all four resources concurrently.

        ``loading`` stays on until the transactions fetch settles; the other
        fetches only touch their own error slot.
        """
        self._active = True
        self.state = replace(self.state, loading=True)
        logger.info("Loading dashboard data")
        await self._refresh(*RESOURCES)

    def deactivate(self) -> None:
        """Cancel pending fetches; anything that still completes is discarded."""
        self._active = False
        pending = list(self._inflight.values())
        self._inflight.clear()
        for task in pending:
            task.cancel()
        if pending:
            logger.info(f"Cancelled {len(pending)} pending fetch(es)")
        self.state = replace(self.state, loading=False)

    @property
    def active(self) -> bool:
        return self._active

    # -- fetching ---------------------------------------------------------

    async def _refresh(self, *resources: str) -> None:
        async with asyncio.TaskGroup() as tg:
            for resource in resources:
                if resource in self._inflight:
                    logger.debug(f"{resource} fetch already pending, not re-triggering")
                    continue
                self._inflight[resource] = tg.create_task(
                    self._load(resource), name=f"fetch-{resource}"
                )

    async def _fetch(self, resource: str):
        if resource == CATEGORIES:
            return await self.api.fetch_categories(self.credentials.get_token())
        token = require_token(self.credentials, resource)
        return await getattr(self.api, _TOKEN_FETCHERS[resource])(token)

    async def _load(self, resource: str) -> None:
        try:
            result = await self._fetch(resource)
        except (MissingCredential, FetchError) as e:
            if self._active:
                self._record_error(resource, e.message)
        else:
            if self._active:
                self._apply(resource, result)
            else:
                logger.debug(f"Discarding {resource} result after deactivation")
        finally:
            if self._inflight.get(resource) is asyncio.current_task():
                del self._inflight[resource]
            if resource == TRANSACTIONS:
                self.state = replace(self.state, loading=False)

    def _apply(self, resource: str, result) -> None:
        if resource == TRANSACTIONS:
            self.transactions = result
        elif resource == BUDGETS:
            self.category_budgets = result
        elif resource == OVERALL_BUDGET:
            self.overall_budget = result
        elif resource == CATEGORIES:
            self.categories = result
            self.category_index = build_index(result)

        if resource in self.state.errors:
            errors = {k: v for k, v in self.state.errors.items() if k != resource}
            self.state = replace(self.state, errors=errors)
        size = len(result) if isinstance(result, tuple) else int(result is not None)
        logger.info(f"Loaded {resource} ({size})")

    def _record_error(self, resource: str, message: str) -> None:
        # re-insert so the latest failure is last
        errors = {k: v for k, v in self.state.errors.items() if k != resource}
        errors[resource] = message
        self.state = replace(self.state, errors=errors)
        logger.warning(f"{resource} fetch failed: {message}")
        self.bus.publish(FETCH_FAILED, {"resource": resource, "message": message})

    # -- intents ----------------------------------------------------------

    def show_more(self) -> None:
        self.state = replace(self.state, show_all=True)

    def open_add_transaction(self) -> None:
        self.state = replace(self.state, show_add_transaction_form=True, notice=None)

    async def close_add_transaction(self, created: bool = False) -> None:
        self.state = replace(self.state, show_add_transaction_form=False, notice=None)
        if created:
            await self._refresh(TRANSACTIONS)

    def open_add_budget(self) -> None:
        self.state = replace(self.state, show_add_budget_form=True, notice=None)

    async def close_add_budget(self, created: bool = False) -> None:
        self.state = replace(self.state, show_add_budget_form=False, notice=None)
        if created and self.refresh_budgets_on_create:
            await self._refresh(BUDGETS, OVERALL_BUDGET)

    def on_delete_transaction(self, transaction_id: int) -> None:
        logger.debug(f"Delete requested for transaction {transaction_id}")
        self.bus.publish(TRANSACTION_DELETE_REQUESTED, {"id": transaction_id})

    async def submit_transaction(self, draft: TransactionDraft) -> bool:
        """Create a transaction; on failure the modal stays open with a notice."""
        try:
            token = require_token(self.credentials, CREATE_TRANSACTION)
            await self.api.create_transaction(token, draft)
        except (MissingCredential, MutationError) as e:
            self._mutation_failed(CREATE_TRANSACTION, e.message)
            return False
        self.bus.publish(TRANSACTION_CREATED, {"category_id": draft.category_id, "amount": draft.amount})
        await self.close_add_transaction(created=True)
        return True

    async def submit_budget(self, draft: BudgetDraft) -> bool:
        try:
            token = require_token(self.credentials, CREATE_BUDGET)
            await self.api.create_budget(token, draft)
        except (MissingCredential, MutationError) as e:
            self._mutation_failed(CREATE_BUDGET, e.message)
            return False
        self.bus.publish(BUDGET_CREATED, {"category_id": draft.category_id, "amount_limit": draft.amount_limit})
        await self.close_add_budget(created=True)
        return True

    def _mutation_failed(self, action: str, message: str) -> None:
        logger.error(f"{action} failed: {message}")
        self.state = replace(self.state, notice=message)
        self.bus.publish(MUTATION_FAILED, {"action": action, "message": message})

    # -- view model -------------------------------------------------------

    def view(self) -> DashboardView:
        state = self.state
        return DashboardView(
            loading=state.loading,
            error=state.error,
            errors=dict(state.errors),
            notice=state.notice,
            overall_card=compose_overall_card(self.overall_budget),
            budget_cards=compose_budget_cards(self.category_budgets, self.category_index),
            visible_transactions=compose_visible_transactions(
                self.transactions, state.show_all, reveal_all=self.reveal_all_on_show_more
            ),
            show_add_transaction_form=state.show_add_transaction_form,
            show_add_budget_form=state.show_add_budget_form,
            show_all=state.show_all,
            can_show_more=not state.show_all,
        )
