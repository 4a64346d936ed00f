"""Ledger controller.

``FinanceLedger`` is the single owner of the ledger state.  It wraps a
:class:`~finance_tracker.storage.LedgerStore`, validates every change
before it reaches storage, keeps cached copies of each table for readers,
and notifies subscribers after each successful mutation.  Presentation code
holds a reference to the ledger (or subscribes to it) and never edits the
collections directly.
"""

from __future__ import annotations

import logging
import math
from dataclasses import fields, replace
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from .analytics import (
    AnnualStats,
    MonthlyStats,
    compute_annual_stats,
    compute_monthly_stats,
    current_period,
    parse_period,
)
from .budgets import BudgetEvaluation, evaluate_budgets
from .distribution import WalletMonthStats, ensure_valid_distribution, split_income, wallet_month_stats
from .errors import CategoryInUseError, NotFoundError, PersistenceError, ValidationError
from .icons import category_display
from .models import (
    TRANSACTION_TYPES,
    WALLET_TRANSACTION_TYPES,
    Category,
    FinancialGoal,
    IncomeDistribution,
    IncomeSource,
    SavingsGoal,
    Transaction,
    UserSettings,
    Wallet,
    WalletTransaction,
    new_id,
    utc_now_iso,
)
from .savings import apply_deposit
from .storage import LedgerStore

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]
DistributionInput = Union[IncomeDistribution, Dict[str, Any], Tuple[str, float]]


def _amount(name: str, value: Any, allow_zero: bool = True) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(amount) or amount < 0 or (amount == 0 and not allow_zero):
        qualifier = 'a finite non-negative number' if allow_zero else 'a finite positive number'
        raise ValidationError(f"{name} must be {qualifier}, got {value!r}")
    return amount


def _iso_date(name: str, value: Any) -> str:
    try:
        return date.fromisoformat(str(value)[:10]).isoformat()
    except ValueError:
        raise ValidationError(f"{name} must be a YYYY-MM-DD date, got {value!r}") from None


def _required_text(name: str, value: Any) -> str:
    text = str(value or '').strip()
    if not text:
        raise ValidationError(f"{name} cannot be empty")
    return text


def _to_distribution(entry: DistributionInput) -> IncomeDistribution:
    if isinstance(entry, IncomeDistribution):
        return entry
    if isinstance(entry, dict):
        return IncomeDistribution.from_dict(entry)
    wallet_id, percentage = entry
    return IncomeDistribution(wallet_id=str(wallet_id), percentage=float(percentage))


class FinanceLedger:
    """Single controller for transactions, categories, goals and wallets."""

    def __init__(self, store: LedgerStore, current_month: Optional[str] = None):
        self.store = store
        self.current_month = current_month or current_period()
        parse_period(self.current_month)
        self._listeners: List[Listener] = []
        self.refresh()

    # ------------------------------------------------------------------
    # State and subscriptions
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Reload every table from the store."""
        self.transactions: List[Transaction] = self.store.get_transactions()
        self.categories: List[Category] = self.store.get_categories()
        self.financial_goals: List[FinancialGoal] = self.store.get_financial_goals()
        self.savings_goals: List[SavingsGoal] = self.store.get_savings_goals()
        self.income_sources: List[IncomeSource] = self.store.get_income_sources()
        self.wallets: List[Wallet] = self.store.get_wallets()
        self.wallet_transactions: List[WalletTransaction] = self.store.get_wallet_transactions()
        self.settings: UserSettings = self.store.get_settings()

    def subscribe(self, listener: Listener) -> Listener:
        """Register ``listener(table_name)`` to run after each change."""
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, table: str) -> None:
        for listener in list(self._listeners):
            listener(table)

    def _commit(self, table: str, records: List[Any]) -> List[Any]:
        """Return ``records`` once storage is confirmed to hold them.

        Raises:
            PersistenceError: If the write did not land; the cached tables
                are reloaded from storage first.
        """
        if not self.store.is_persisted(table, records):
            logger.error("Changes to ledger table '%s' were not saved", table)
            self.refresh()
            raise PersistenceError(f"Changes to '{table}' could not be saved")
        return records

    def set_current_month(self, period: str) -> None:
        parse_period(period)
        self.current_month = period
        self._notify('currentMonth')

    # ------------------------------------------------------------------
    # Lookups and statistics
    # ------------------------------------------------------------------

    def get_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self.categories if c.id == category_id), None)

    def get_savings_goal(self, goal_id: str) -> Optional[SavingsGoal]:
        return next((g for g in self.savings_goals if g.id == goal_id), None)

    def category_display(self, category_id: str) -> Tuple[str, str, str]:
        return category_display(self.categories, category_id)

    def monthly_stats(self, period: Optional[str] = None) -> MonthlyStats:
        return compute_monthly_stats(self.transactions, period or self.current_month)

    def annual_stats(self, year: Optional[int] = None) -> AnnualStats:
        if year is None:
            year = parse_period(self.current_month)[0]
        return compute_annual_stats(self.transactions, year)

    def budget_status(self, period: Optional[str] = None) -> List[BudgetEvaluation]:
        """Evaluate every budget against the expenses of the selected month."""
        return evaluate_budgets(self.financial_goals, self.transactions, period or self.current_month)

    def wallet_stats(self, period: Optional[str] = None) -> List[WalletMonthStats]:
        return wallet_month_stats(self.wallets, self.wallet_transactions, period or self.current_month)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _validate_transaction(self, txn: Transaction) -> None:
        if txn.type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unknown transaction type '{txn.type}'")
        _amount('amount', txn.amount)
        _iso_date('date', txn.date)

        category = self.get_category(txn.category_id)
        if category is None:
            raise ValidationError(f"Category '{txn.category_id}' does not exist")
        if category.type != txn.type:
            raise ValidationError(
                f"Category '{category.id}' is a {category.type} category, not {txn.type}"
            )

        if txn.savings_goal_id is None and txn.savings_contribution is None:
            return
        if txn.type != 'income':
            raise ValidationError("Only income transactions can contribute to a savings goal")
        if txn.savings_contribution is not None:
            contribution = _amount('savings contribution', txn.savings_contribution)
            if contribution > txn.amount:
                raise ValidationError(
                    f"Savings contribution {contribution:g} exceeds the transaction amount {txn.amount:g}"
                )

    def add_transaction(
        self,
        amount: float,
        type: str,
        category_id: str,
        date: Optional[str] = None,
        description: str = '',
        savings_goal_id: Optional[str] = None,
        savings_contribution: Optional[float] = None,
    ) -> Transaction:
        """Record a transaction and credit any linked savings goal.

        The savings goal is only credited once the transaction is confirmed
        in storage.  The transaction keeps its full amount; the contribution
        is not deducted from it.

        Raises:
            ValidationError: If the transaction is invalid; nothing is written.
            PersistenceError: If the store did not keep the transaction, or
                kept it but not the goal's new balance.
        """
        txn = Transaction(
            id=new_id(),
            amount=_amount('amount', amount),
            type=type,
            category_id=category_id,
            description=description or '',
            date=_iso_date('date', date or _today()),
            created_at=utc_now_iso(),
            savings_goal_id=savings_goal_id or None,
            savings_contribution=(
                None if savings_contribution is None else _amount('savings contribution', savings_contribution)
            ),
        )
        self._validate_transaction(txn)
        if txn.savings_goal_id and self.get_savings_goal(txn.savings_goal_id) is None:
            raise ValidationError(f"Savings goal '{txn.savings_goal_id}' does not exist")

        self.transactions = self._commit('transactions', self.store.add_transaction(txn))
        logger.info("Added %s transaction %s (%.2f)", txn.type, txn.id, txn.amount)
        self._notify('transactions')

        if txn.savings_goal_id and txn.savings_contribution and txn.savings_contribution > 0:
            self._credit_savings_goal(txn.savings_goal_id, txn.savings_contribution)
        return txn

    def update_transaction(self, transaction_id: str, **updates: Any) -> Transaction:
        """Merge ``updates`` into a transaction after validating the result.

        Editing a transaction never changes a savings goal balance.
        """
        current = next((t for t in self.transactions if t.id == transaction_id), None)
        if current is None:
            raise NotFoundError('Transaction', transaction_id)
        unknown = set(updates) - ({f.name for f in fields(Transaction)} - {'id'})
        if unknown:
            raise ValidationError(f"Unknown transaction field(s): {', '.join(sorted(unknown))}")
        if 'amount' in updates:
            updates['amount'] = _amount('amount', updates['amount'])
        if updates.get('date'):
            updates['date'] = _iso_date('date', updates['date'])
        merged = replace(current, **updates)
        self._validate_transaction(merged)

        self.transactions = self._commit('transactions', self.store.update_transaction(transaction_id, updates))
        self._notify('transactions')
        return merged

    def delete_transaction(self, transaction_id: str) -> None:
        self.transactions = self._commit('transactions', self.store.delete_transaction(transaction_id))
        self._notify('transactions')

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def add_category(self, name: str, icon: str, color: str, type: str) -> Category:
        if type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unknown category type '{type}'")
        category = Category(id=new_id(), name=_required_text('name', name), icon=icon, color=color, type=type)
        self.categories = self._commit('categories', self.store.add_category(category))
        self._notify('categories')
        return category

    def update_category(self, category_id: str, **updates: Any) -> None:
        current = self.get_category(category_id)
        if current is None:
            raise NotFoundError('Category', category_id)
        new_type = updates.get('type', current.type)
        if new_type != current.type:
            if new_type not in TRANSACTION_TYPES:
                raise ValidationError(f"Unknown category type '{new_type}'")
            if self._category_references(category_id):
                raise ValidationError(
                    f"Category '{category_id}' has transactions; its type cannot change"
                )
        if 'name' in updates:
            updates['name'] = _required_text('name', updates['name'])
        self.categories = self._commit('categories', self.store.update_category(category_id, updates))
        self._notify('categories')

    def _category_references(self, category_id: str) -> int:
        return sum(1 for t in self.transactions if t.category_id == category_id)

    def delete_category(self, category_id: str) -> None:
        """Delete a category that no transaction references.

        Raises:
            CategoryInUseError: If any transaction still uses the category.
        """
        count = self._category_references(category_id)
        if count:
            raise CategoryInUseError(category_id, count)
        self.categories = self._commit('categories', self.store.delete_category(category_id))
        self._notify('categories')

    # ------------------------------------------------------------------
    # Budgets
    # ------------------------------------------------------------------

    def _require_expense_category(self, category_id: str) -> None:
        category = self.get_category(category_id)
        if category is None or category.type != 'expense':
            raise ValidationError(f"Budgets need an expense category, got '{category_id}'")

    def add_financial_goal(
        self, category_id: str, monthly_limit: float, month: Optional[str] = None
    ) -> FinancialGoal:
        self._require_expense_category(category_id)
        month = month or self.current_month
        parse_period(month)
        goal = FinancialGoal(
            id=new_id(),
            category_id=category_id,
            monthly_limit=_amount('monthly limit', monthly_limit, allow_zero=False),
            month=month,
        )
        self.financial_goals = self._commit('goals', self.store.add_financial_goal(goal))
        self._notify('goals')
        return goal

    def update_financial_goal(self, goal_id: str, **updates: Any) -> None:
        _require(self.financial_goals, 'Budget', goal_id)
        if 'category_id' in updates:
            self._require_expense_category(updates['category_id'])
        if 'monthly_limit' in updates:
            updates['monthly_limit'] = _amount('monthly limit', updates['monthly_limit'], allow_zero=False)
        if 'month' in updates:
            parse_period(updates['month'])
        self.financial_goals = self._commit('goals', self.store.update_financial_goal(goal_id, updates))
        self._notify('goals')

    def delete_financial_goal(self, goal_id: str) -> None:
        self.financial_goals = self._commit('goals', self.store.delete_financial_goal(goal_id))
        self._notify('goals')

    # ------------------------------------------------------------------
    # Savings goals
    # ------------------------------------------------------------------

    def add_savings_goal(self, name: str, target_amount: float, deadline: Optional[str] = None) -> SavingsGoal:
        goal = SavingsGoal(
            id=new_id(),
            name=_required_text('name', name),
            target_amount=_amount('target amount', target_amount, allow_zero=False),
            current_amount=0.0,
            deadline=_iso_date('deadline', deadline) if deadline else None,
            created_at=utc_now_iso(),
        )
        self.savings_goals = self._commit('savingsGoals', self.store.add_savings_goal(goal))
        self._notify('savingsGoals')
        return goal

    def update_savings_goal(self, goal_id: str, **updates: Any) -> None:
        """Edit a savings goal; the only way to lower ``current_amount``."""
        _require(self.savings_goals, 'Savings goal', goal_id)
        if 'target_amount' in updates:
            updates['target_amount'] = _amount('target amount', updates['target_amount'], allow_zero=False)
        if 'current_amount' in updates:
            updates['current_amount'] = _amount('current amount', updates['current_amount'])
        if updates.get('deadline'):
            updates['deadline'] = _iso_date('deadline', updates['deadline'])
        self.savings_goals = self._commit('savingsGoals', self.store.update_savings_goal(goal_id, updates))
        self._notify('savingsGoals')

    def delete_savings_goal(self, goal_id: str) -> None:
        self.savings_goals = self._commit('savingsGoals', self.store.delete_savings_goal(goal_id))
        self._notify('savingsGoals')

    def _credit_savings_goal(self, goal_id: str, amount: float) -> SavingsGoal:
        goal = next((g for g in self.store.get_savings_goals() if g.id == goal_id), None)
        if goal is None:
            raise NotFoundError('Savings goal', goal_id)
        new_amount = apply_deposit(goal, amount)
        updated = self.store.update_savings_goal(goal_id, {'current_amount': new_amount})
        self.savings_goals = self._commit('savingsGoals', updated)
        logger.info("Savings goal %s: %.2f -> %.2f", goal_id, goal.current_amount, new_amount)
        self._notify('savingsGoals')
        return self.get_savings_goal(goal_id) or goal

    def deposit_to_savings_goal(self, goal_id: str, amount: float) -> SavingsGoal:
        """Add a manual deposit to a savings goal.

        Raises:
            NotFoundError: If the goal does not exist.
            ValidationError: If the amount is not positive.
            PersistenceError: If the new balance could not be saved.
        """
        return self._credit_savings_goal(goal_id, amount)

    # ------------------------------------------------------------------
    # Income sources and wallets
    # ------------------------------------------------------------------

    def add_income_source(self, name: str, distributions: Iterable[DistributionInput]) -> IncomeSource:
        """Create an income source; only entries with a positive share are kept.

        Raises:
            DistributionError: If the positive percentages do not add up to 100.
        """
        active = ensure_valid_distribution(_to_distribution(d) for d in distributions)
        source = IncomeSource(id=new_id(), name=_required_text('name', name), distributions=active)
        self.income_sources = self._commit('incomeSources', self.store.add_income_source(source))
        self._notify('incomeSources')
        return source

    def update_income_source(
        self,
        source_id: str,
        name: Optional[str] = None,
        distributions: Optional[Iterable[DistributionInput]] = None,
    ) -> None:
        _require(self.income_sources, 'Income source', source_id)
        updates: Dict[str, Any] = {}
        if name is not None:
            updates['name'] = _required_text('name', name)
        if distributions is not None:
            updates['distributions'] = ensure_valid_distribution(_to_distribution(d) for d in distributions)
        self.income_sources = self._commit('incomeSources', self.store.update_income_source(source_id, updates))
        self._notify('incomeSources')

    def delete_income_source(self, source_id: str) -> None:
        self.income_sources = self._commit('incomeSources', self.store.delete_income_source(source_id))
        self._notify('incomeSources')

    def suggested_split(self, source_id: str, amount: float) -> Dict[str, float]:
        """Advisory amount per wallet for ``amount`` received from a source."""
        source = next((s for s in self.income_sources if s.id == source_id), None)
        if source is None:
            raise NotFoundError('Income source', source_id)
        return split_income(_amount('amount', amount), source.distributions)

    def add_wallet(self, name: str, icon: str = 'Wallet', color: str = '#10B981') -> Wallet:
        wallet = Wallet(id=new_id(), name=_required_text('name', name), icon=icon, color=color, balance=0.0)
        self.wallets = self._commit('wallets', self.store.add_wallet(wallet))
        self._notify('wallets')
        return wallet

    def update_wallet(self, wallet_id: str, **updates: Any) -> None:
        _require(self.wallets, 'Wallet', wallet_id)
        self.wallets = self._commit('wallets', self.store.update_wallet(wallet_id, updates))
        self._notify('wallets')

    def delete_wallet(self, wallet_id: str) -> None:
        self.wallets = self._commit('wallets', self.store.delete_wallet(wallet_id))
        self._notify('wallets')

    def add_wallet_transaction(
        self,
        wallet_id: str,
        amount: float,
        type: str,
        description: str = '',
        date: Optional[str] = None,
        linked_transaction_id: Optional[str] = None,
    ) -> WalletTransaction:
        if type not in WALLET_TRANSACTION_TYPES:
            raise ValidationError(f"Wallet movements are credit or debit, got '{type}'")
        movement = WalletTransaction(
            id=new_id(),
            wallet_id=wallet_id,
            amount=_amount('amount', amount, allow_zero=False),
            type=type,
            description=description or '',
            date=_iso_date('date', date or _today()),
            linked_transaction_id=linked_transaction_id,
        )
        self.wallet_transactions = self._commit('walletTransactions', self.store.add_wallet_transaction(movement))
        self._notify('walletTransactions')
        return movement

    # ------------------------------------------------------------------
    # Settings and backup
    # ------------------------------------------------------------------

    def update_settings(self, **changes: Any) -> UserSettings:
        try:
            settings = replace(self.settings, **changes)
        except TypeError as e:
            raise ValidationError(f"Invalid settings: {e}") from None
        if not self.store.save_settings(settings):
            raise PersistenceError("Settings could not be saved")
        self.settings = settings
        self._notify('settings')
        return settings

    def export_data(self) -> str:
        return self.store.export_all_data()

    def import_data(self, json_string: str) -> bool:
        """Restore a backup document; reloads every table on success."""
        ok = self.store.import_all_data(json_string)
        if ok:
            self.refresh()
            self._notify('*')
        return ok


def _today() -> str:
    return date.today().isoformat()


def _require(records: Iterable[Any], entity: str, record_id: str) -> None:
    if not any(r.id == record_id for r in records):
        raise NotFoundError(entity, record_id)
