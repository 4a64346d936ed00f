"""Ledger storage and file I/O operations.

Each logical table (transactions, categories, budgets ...) is persisted as
one JSON document inside the ledger directory.  Every mutation re-reads the
whole table, replaces it and returns the resulting collection; with a single
writer and personal-scale volumes that is all the coordination needed.

Reads never raise: a missing, unreadable or corrupted table falls back to
its default value and the problem is logged.  Writes report success as a
boolean.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import fields, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from .config import LEDGER_DIR, STORAGE_KEYS
from .errors import ValidationError
from .models import (
    DEFAULT_CATEGORIES,
    DEFAULT_WALLETS,
    Category,
    FinancialGoal,
    IncomeSource,
    SavingsGoal,
    Transaction,
    UserSettings,
    Wallet,
    WalletTransaction,
)

logger = logging.getLogger(__name__)

R = TypeVar('R')

# Table name -> record type for every list-shaped table
TABLE_MODELS: Dict[str, Type[Any]] = {
    'transactions': Transaction,
    'categories': Category,
    'goals': FinancialGoal,
    'savingsGoals': SavingsGoal,
    'incomeSources': IncomeSource,
    'wallets': Wallet,
    'walletTransactions': WalletTransaction,
}


class LedgerStore:
    """Synchronous key-value store for the ledger tables."""

    def __init__(self, ledger_dir: Optional[Union[str, Path]] = None):
        """Initialize the store.

        Args:
            ledger_dir: Optional custom directory for the table files.
                        Defaults to LEDGER_DIR from config.
        """
        self.ledger_dir = Path(ledger_dir) if ledger_dir else LEDGER_DIR

    def get_path(self, table: str) -> Path:
        """Get the file path backing a logical table."""
        try:
            stem = STORAGE_KEYS[table]
        except KeyError:
            raise ValueError(f"Unknown ledger table: {table}") from None
        return self.ledger_dir / f"{stem}.json"

    # ------------------------------------------------------------------
    # Raw table access
    # ------------------------------------------------------------------

    def read_table(self, table: str, default: Any) -> Any:
        """Return the decoded JSON stored for ``table`` or ``default``."""
        target = self.get_path(table)
        if not target.exists():
            return default
        try:
            with target.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read ledger table '%s' from %s: %s", table, target, e)
            return default
        if data is None or not isinstance(data, type(default)):
            logger.warning("Ledger table '%s' has unexpected shape; using defaults", table)
            return default
        return data

    def write_table(self, table: str, value: Any) -> bool:
        """Replace the stored JSON for ``table``.

        The document is written to a temporary file and moved into place so
        a failed write never leaves a half-written table behind.

        Returns:
            True when the table was written, False otherwise.
        """
        target = self.get_path(table)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.stem}.", suffix='.tmp', dir=str(target.parent)
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as handle:
                    json.dump(value, handle, indent=2, ensure_ascii=False)
                os.replace(tmp_name, target)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write ledger table '%s' to %s: %s", table, target, e)
            return False
        return True

    def is_persisted(self, table: str, records: List[Any]) -> bool:
        """Check that ``records`` is exactly what the table file now holds.

        Mutations return the collection they tried to write even when the
        write failed; callers that must not act on an unsaved change compare
        it against storage with this.
        """
        return self.read_table(table, None) == [record.to_dict() for record in records]

    # ------------------------------------------------------------------
    # Generic record helpers
    # ------------------------------------------------------------------

    def _load(self, table: str, model: Type[R]) -> List[R]:
        records: List[R] = []
        for entry in self.read_table(table, []):
            if not isinstance(entry, dict):
                continue
            try:
                records.append(model.from_dict(entry))  # type: ignore[attr-defined]
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed %s record %r: %s", table, entry.get('id'), e)
        return records

    def _save(self, table: str, records: List[Any]) -> bool:
        return self.write_table(table, [record.to_dict() for record in records])

    def _add(self, table: str, getter: Callable[[], List[R]], record: R, prepend: bool = False) -> List[R]:
        records = getter()
        if prepend:
            records.insert(0, record)
        else:
            records.append(record)
        self._save(table, records)
        logger.debug("Added %s record %s", table, getattr(record, 'id', None))
        return records

    def _update(
        self,
        table: str,
        getter: Callable[[], List[R]],
        record_id: str,
        updates: Dict[str, Any],
    ) -> List[R]:
        records = getter()
        for index, record in enumerate(records):
            if getattr(record, 'id', None) != record_id:
                continue
            allowed = {f.name for f in fields(record)} - {'id'}
            unknown = set(updates) - allowed
            if unknown:
                raise ValidationError(
                    f"Unknown field(s) for {table}: {', '.join(sorted(unknown))}"
                )
            records[index] = replace(record, **updates)
            self._save(table, records)
            logger.debug("Updated %s record %s: %s", table, record_id, sorted(updates))
            break
        return records

    def _delete(self, table: str, getter: Callable[[], List[R]], record_id: str) -> List[R]:
        records = [r for r in getter() if getattr(r, 'id', None) != record_id]
        self._save(table, records)
        logger.debug("Deleted %s record %s", table, record_id)
        return records

    # ------------------------------------------------------------------
    # Transactions (newest first)
    # ------------------------------------------------------------------

    def get_transactions(self) -> List[Transaction]:
        return self._load('transactions', Transaction)

    def save_transactions(self, transactions: List[Transaction]) -> bool:
        return self._save('transactions', transactions)

    def add_transaction(self, transaction: Transaction) -> List[Transaction]:
        return self._add('transactions', self.get_transactions, transaction, prepend=True)

    def update_transaction(self, transaction_id: str, updates: Dict[str, Any]) -> List[Transaction]:
        return self._update('transactions', self.get_transactions, transaction_id, updates)

    def delete_transaction(self, transaction_id: str) -> List[Transaction]:
        return self._delete('transactions', self.get_transactions, transaction_id)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def get_categories(self) -> List[Category]:
        saved = self._load('categories', Category)
        return saved if saved else [replace(c) for c in DEFAULT_CATEGORIES]

    def save_categories(self, categories: List[Category]) -> bool:
        return self._save('categories', categories)

    def add_category(self, category: Category) -> List[Category]:
        return self._add('categories', self.get_categories, category)

    def update_category(self, category_id: str, updates: Dict[str, Any]) -> List[Category]:
        return self._update('categories', self.get_categories, category_id, updates)

    def delete_category(self, category_id: str) -> List[Category]:
        return self._delete('categories', self.get_categories, category_id)

    # ------------------------------------------------------------------
    # Financial goals (budgets)
    # ------------------------------------------------------------------

    def get_financial_goals(self) -> List[FinancialGoal]:
        return self._load('goals', FinancialGoal)

    def save_financial_goals(self, goals: List[FinancialGoal]) -> bool:
        return self._save('goals', goals)

    def add_financial_goal(self, goal: FinancialGoal) -> List[FinancialGoal]:
        return self._add('goals', self.get_financial_goals, goal)

    def update_financial_goal(self, goal_id: str, updates: Dict[str, Any]) -> List[FinancialGoal]:
        return self._update('goals', self.get_financial_goals, goal_id, updates)

    def delete_financial_goal(self, goal_id: str) -> List[FinancialGoal]:
        return self._delete('goals', self.get_financial_goals, goal_id)

    # ------------------------------------------------------------------
    # Savings goals
    # ------------------------------------------------------------------

    def get_savings_goals(self) -> List[SavingsGoal]:
        return self._load('savingsGoals', SavingsGoal)

    def save_savings_goals(self, goals: List[SavingsGoal]) -> bool:
        return self._save('savingsGoals', goals)

    def add_savings_goal(self, goal: SavingsGoal) -> List[SavingsGoal]:
        return self._add('savingsGoals', self.get_savings_goals, goal)

    def update_savings_goal(self, goal_id: str, updates: Dict[str, Any]) -> List[SavingsGoal]:
        return self._update('savingsGoals', self.get_savings_goals, goal_id, updates)

    def delete_savings_goal(self, goal_id: str) -> List[SavingsGoal]:
        return self._delete('savingsGoals', self.get_savings_goals, goal_id)

    # ------------------------------------------------------------------
    # Income sources
    # ------------------------------------------------------------------

    def get_income_sources(self) -> List[IncomeSource]:
        return self._load('incomeSources', IncomeSource)

    def add_income_source(self, source: IncomeSource) -> List[IncomeSource]:
        return self._add('incomeSources', self.get_income_sources, source)

    def update_income_source(self, source_id: str, updates: Dict[str, Any]) -> List[IncomeSource]:
        return self._update('incomeSources', self.get_income_sources, source_id, updates)

    def delete_income_source(self, source_id: str) -> List[IncomeSource]:
        return self._delete('incomeSources', self.get_income_sources, source_id)

    # ------------------------------------------------------------------
    # Wallets and wallet movements
    # ------------------------------------------------------------------

    def get_wallets(self) -> List[Wallet]:
        saved = self._load('wallets', Wallet)
        return saved if saved else [replace(w) for w in DEFAULT_WALLETS]

    def add_wallet(self, wallet: Wallet) -> List[Wallet]:
        return self._add('wallets', self.get_wallets, wallet)

    def update_wallet(self, wallet_id: str, updates: Dict[str, Any]) -> List[Wallet]:
        return self._update('wallets', self.get_wallets, wallet_id, updates)

    def delete_wallet(self, wallet_id: str) -> List[Wallet]:
        return self._delete('wallets', self.get_wallets, wallet_id)

    def get_wallet_transactions(self) -> List[WalletTransaction]:
        return self._load('walletTransactions', WalletTransaction)

    def add_wallet_transaction(self, transaction: WalletTransaction) -> List[WalletTransaction]:
        return self._add('walletTransactions', self.get_wallet_transactions, transaction, prepend=True)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self) -> UserSettings:
        data = self.read_table('settings', {})
        try:
            return UserSettings.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring malformed settings: %s", e)
            return UserSettings()

    def save_settings(self, settings: UserSettings) -> bool:
        return self.write_table('settings', settings.to_dict())

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def export_all_data(self) -> str:
        """Bundle every table into one JSON document with an export timestamp."""
        data: Dict[str, Any] = {
            'transactions': [t.to_dict() for t in self.get_transactions()],
            'categories': [c.to_dict() for c in self.get_categories()],
            'goals': [g.to_dict() for g in self.get_financial_goals()],
            'savingsGoals': [g.to_dict() for g in self.get_savings_goals()],
            'incomeSources': [s.to_dict() for s in self.get_income_sources()],
            'wallets': [w.to_dict() for w in self.get_wallets()],
            'walletTransactions': [t.to_dict() for t in self.get_wallet_transactions()],
            'settings': self.get_settings().to_dict(),
            'exportedAt': datetime.now(timezone.utc).isoformat(),
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def import_all_data(self, json_string: str) -> bool:
        """Overwrite every table present in a backup document.

        Tables missing from the document are left untouched.  The whole
        document is validated before anything is written, so a malformed
        backup changes nothing.

        Returns:
            True on success, False if the document was rejected or a table
            could not be written.
        """
        try:
            data = json.loads(json_string)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning("Rejected backup document: %s", e)
            return False
        if not isinstance(data, dict):
            logger.warning("Rejected backup document: top level is not an object")
            return False

        pending: Dict[str, Any] = {}
        for table, model in TABLE_MODELS.items():
            rows = data.get(table)
            if rows is None:
                continue
            if not isinstance(rows, list):
                logger.warning("Rejected backup document: '%s' is not a list", table)
                return False
            try:
                pending[table] = [model.from_dict(row).to_dict() for row in rows]
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Rejected backup document: bad '%s' record: %s", table, e)
                return False

        settings = data.get('settings')
        if settings is not None:
            if not isinstance(settings, dict):
                logger.warning("Rejected backup document: 'settings' is not an object")
                return False
            pending['settings'] = UserSettings.from_dict(settings).to_dict()

        ok = True
        for table, value in pending.items():
            ok = self.write_table(table, value) and ok
        logger.info("Imported backup tables: %s", ', '.join(pending) or '(none)')
        return ok
