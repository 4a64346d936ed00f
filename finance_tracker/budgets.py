"""Budget (financial goal) evaluation.

A budget is a monthly spending ceiling for one expense category.  The
evaluation never writes anything back; it only classifies how the month's
spending compares to the limit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from .analytics import transactions_in_month
from .config import NEAR_LIMIT_RATIO
from .models import Category, FinancialGoal, Transaction

OVER_BUDGET = 'over-budget'
NEAR_LIMIT = 'near-limit'
ON_TRACK = 'on-track'


@dataclass
class BudgetEvaluation:
    goal_id: str
    category_id: str
    limit: float
    spent: float
    percentage: float
    status: str

    @property
    def remaining(self) -> float:
        return max(0.0, self.limit - self.spent)


def classify_budget(spent: float, limit: float, near_ratio: float = NEAR_LIMIT_RATIO) -> str:
    """Classify spending against a limit.

    ``over-budget`` wins over ``near-limit``, which wins over ``on-track``.
    Spending exactly the limit is not over budget.
    """
    if spent > limit:
        return OVER_BUDGET
    ratio = spent / limit if limit > 0 else 0.0
    if ratio >= near_ratio:
        return NEAR_LIMIT
    return ON_TRACK


def evaluate_budget(goal: FinancialGoal, period_transactions: Iterable[Transaction]) -> BudgetEvaluation:
    """Evaluate one budget against the transactions of its period.

    Args:
        goal: The budget to evaluate
        period_transactions: Transactions already restricted to the period;
            only expenses in the goal's category are counted

    Returns:
        BudgetEvaluation with ``percentage`` capped at 100 for display while
        ``status`` uses the uncapped ratio.
    """
    spent = sum(
        float(t.amount)
        for t in period_transactions
        if t.type == 'expense' and t.category_id == goal.category_id
    )
    limit = float(goal.monthly_limit)
    percentage = min(spent / limit * 100, 100.0) if limit > 0 else 0.0
    return BudgetEvaluation(
        goal_id=goal.id,
        category_id=goal.category_id,
        limit=limit,
        spent=spent,
        percentage=percentage,
        status=classify_budget(spent, limit),
    )


def evaluate_budgets(
    goals: Iterable[FinancialGoal],
    transactions: Sequence[Transaction],
    period: str,
) -> List[BudgetEvaluation]:
    """Evaluate every budget against the expenses of ``period``."""
    month = transactions_in_month(transactions, period)
    return [evaluate_budget(goal, month) for goal in goals]


def summarize_statuses(evaluations: Iterable[BudgetEvaluation]) -> Dict[str, int]:
    counts = {OVER_BUDGET: 0, NEAR_LIMIT: 0, ON_TRACK: 0}
    for evaluation in evaluations:
        counts[evaluation.status] += 1
    return counts


def categories_without_budget(
    categories: Iterable[Category], goals: Iterable[FinancialGoal]
) -> List[Category]:
    """Expense categories that do not have a budget yet."""
    budgeted = {g.category_id for g in goals}
    return [c for c in categories if c.type == 'expense' and c.id not in budgeted]
