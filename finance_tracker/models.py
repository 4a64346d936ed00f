"""Ledger record types.

Every record is a plain dataclass that round-trips through the JSON
representation the ledger tables persist.  Persisted keys are camelCase
(``categoryId``, ``createdAt`` ...) so backups stay compatible with
documents exported by earlier versions of the app; attribute names are the
usual snake_case.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

TRANSACTION_TYPES = ('income', 'expense', 'investment')
WALLET_TRANSACTION_TYPES = ('credit', 'debit')


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    return float(value)


class _Record:
    """JSON mapping shared by all ledger records.

    Subclasses declare ``_keys`` to map attribute names to persisted keys
    whenever the two differ.
    """

    _keys: Dict[str, str] = {}

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, list):
                value = [item.to_dict() if isinstance(item, _Record) else item for item in value]
            data[self._keys.get(f.name, f.name)] = value
        return data


@dataclass
class Category(_Record):
    id: str
    name: str
    icon: str
    color: str
    type: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(
            id=str(data['id']),
            name=str(data.get('name', '')),
            icon=str(data.get('icon', '')),
            color=str(data.get('color', '')),
            type=str(data.get('type', 'expense')),
        )


@dataclass
class Transaction(_Record):
    id: str
    amount: float
    type: str
    category_id: str
    description: str
    date: str
    created_at: str
    savings_goal_id: Optional[str] = None
    savings_contribution: Optional[float] = None

    _keys = {
        'category_id': 'categoryId',
        'created_at': 'createdAt',
        'savings_goal_id': 'savingsGoalId',
        'savings_contribution': 'savingsContribution',
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=str(data['id']),
            amount=float(data.get('amount', 0.0)),
            type=str(data.get('type', 'expense')),
            category_id=str(data.get('categoryId', '')),
            description=str(data.get('description') or ''),
            date=str(data.get('date', '')),
            created_at=str(data.get('createdAt', '')),
            savings_goal_id=data.get('savingsGoalId') or None,
            savings_contribution=_optional_float(data.get('savingsContribution')),
        )


@dataclass
class FinancialGoal(_Record):
    """Monthly spending ceiling for one expense category."""

    id: str
    category_id: str
    monthly_limit: float
    month: str

    _keys = {'category_id': 'categoryId', 'monthly_limit': 'monthlyLimit'}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FinancialGoal':
        return cls(
            id=str(data['id']),
            category_id=str(data.get('categoryId', '')),
            monthly_limit=float(data.get('monthlyLimit', 0.0)),
            month=str(data.get('month', '')),
        )


@dataclass
class SavingsGoal(_Record):
    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    deadline: Optional[str] = None
    created_at: str = ''

    _keys = {
        'target_amount': 'targetAmount',
        'current_amount': 'currentAmount',
        'created_at': 'createdAt',
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SavingsGoal':
        return cls(
            id=str(data['id']),
            name=str(data.get('name', '')),
            target_amount=float(data.get('targetAmount', 0.0)),
            current_amount=float(data.get('currentAmount', 0.0)),
            deadline=data.get('deadline') or None,
            created_at=str(data.get('createdAt', '')),
        )


@dataclass
class IncomeDistribution(_Record):
    wallet_id: str
    percentage: float

    _keys = {'wallet_id': 'walletId'}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'IncomeDistribution':
        return cls(
            wallet_id=str(data.get('walletId', '')),
            percentage=float(data.get('percentage', 0)),
        )


@dataclass
class IncomeSource(_Record):
    id: str
    name: str
    distributions: List[IncomeDistribution] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'IncomeSource':
        return cls(
            id=str(data['id']),
            name=str(data.get('name', '')),
            distributions=[
                IncomeDistribution.from_dict(d)
                for d in data.get('distributions') or []
                if isinstance(d, dict)
            ],
        )


@dataclass
class Wallet(_Record):
    id: str
    name: str
    icon: str
    color: str
    balance: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Wallet':
        return cls(
            id=str(data['id']),
            name=str(data.get('name', '')),
            icon=str(data.get('icon', 'Wallet')),
            color=str(data.get('color', '')),
            balance=float(data.get('balance', 0.0)),
        )


@dataclass
class WalletTransaction(_Record):
    id: str
    wallet_id: str
    amount: float
    type: str
    description: str
    date: str
    linked_transaction_id: Optional[str] = None

    _keys = {'wallet_id': 'walletId', 'linked_transaction_id': 'linkedTransactionId'}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WalletTransaction':
        return cls(
            id=str(data['id']),
            wallet_id=str(data.get('walletId', '')),
            amount=float(data.get('amount', 0.0)),
            type=str(data.get('type', 'credit')),
            description=str(data.get('description') or ''),
            date=str(data.get('date', '')),
            linked_transaction_id=data.get('linkedTransactionId') or None,
        )


@dataclass
class UserSettings(_Record):
    display_name: str = 'Usuário'
    currency: str = 'BRL'
    privacy_mode: bool = False

    _keys = {'display_name': 'displayName', 'privacy_mode': 'privacyMode'}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserSettings':
        defaults = cls()
        return cls(
            display_name=str(data.get('displayName', defaults.display_name)),
            currency=str(data.get('currency', defaults.currency)),
            privacy_mode=bool(data.get('privacyMode', defaults.privacy_mode)),
        )


DEFAULT_CATEGORIES: List[Category] = [
    Category('salary', 'Salário', 'Briefcase', '#10B981', 'income'),
    Category('freelance', 'Freelance', 'Laptop', '#34D399', 'income'),
    Category('investments_income', 'Rendimentos', 'TrendingUp', '#3B82F6', 'income'),
    Category('digital_income', 'Renda Digital', 'Globe', '#8B5CF6', 'income'),
    Category('streaming', 'Streaming', 'Radio', '#EC4899', 'income'),
    Category('other_income', 'Outros', 'Plus', '#6EE7B7', 'income'),

    Category('food', 'Alimentação', 'Utensils', '#EF4444', 'expense'),
    Category('transport', 'Transporte', 'Car', '#F97316', 'expense'),
    Category('housing', 'Moradia', 'Home', '#F59E0B', 'expense'),
    Category('health', 'Saúde', 'Heart', '#EC4899', 'expense'),
    Category('education', 'Educação', 'GraduationCap', '#8B5CF6', 'expense'),
    Category('entertainment', 'Lazer', 'Gamepad2', '#06B6D4', 'expense'),
    Category('shopping', 'Compras', 'ShoppingBag', '#D946EF', 'expense'),
    Category('bills', 'Contas', 'Receipt', '#64748B', 'expense'),
    Category('marketing', 'Marketing', 'Megaphone', '#F97316', 'expense'),
    Category('equipment', 'Equipamentos', 'Cpu', '#3B82F6', 'expense'),
    Category('other_expense', 'Outros', 'MoreHorizontal', '#94A3B8', 'expense'),

    Category('stocks', 'Ações', 'LineChart', '#3B82F6', 'investment'),
    Category('crypto', 'Cripto', 'Bitcoin', '#F59E0B', 'investment'),
    Category('fixed_income', 'Renda Fixa', 'Lock', '#10B981', 'investment'),
    Category('real_estate', 'Imóveis', 'Building', '#6366F1', 'investment'),
]

DEFAULT_WALLETS: List[Wallet] = [
    Wallet('marketing', 'Marketing', 'Megaphone', '#F97316', 0.0),
    Wallet('equipment', 'Equipamentos', 'Cpu', '#3B82F6', 0.0),
    Wallet('free_profit', 'Lucro Livre', 'Wallet', '#10B981', 0.0),
]
