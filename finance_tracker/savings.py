"""Savings goal progress and deposits."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Tuple

from .errors import ValidationError
from .models import SavingsGoal


@dataclass
class SavingsProgress:
    goal_id: str
    current: float
    target: float
    remaining: float
    percentage: float
    days_left: Optional[int] = None

    @property
    def completed(self) -> bool:
        return self.current >= self.target


def savings_progress(goal: SavingsGoal, today: Optional[date] = None) -> SavingsProgress:
    """Calculate how far a savings goal has come.

    ``days_left`` is negative once the deadline has passed and ``None`` when
    the goal has no deadline (or an unreadable one).
    """
    current = float(goal.current_amount)
    target = float(goal.target_amount)
    percentage = min(current / target * 100, 100.0) if target > 0 else 0.0

    days_left = None
    if goal.deadline:
        try:
            deadline = date.fromisoformat(goal.deadline[:10])
        except ValueError:
            deadline = None
        if deadline is not None:
            days_left = (deadline - (today or date.today())).days

    return SavingsProgress(
        goal_id=goal.id,
        current=current,
        target=target,
        remaining=max(0.0, target - current),
        percentage=percentage,
        days_left=days_left,
    )


def savings_totals(goals: Iterable[SavingsGoal]) -> Tuple[float, float]:
    """Return ``(total_saved, total_target)`` across all goals."""
    saved = 0.0
    target = 0.0
    for goal in goals:
        saved += float(goal.current_amount)
        target += float(goal.target_amount)
    return saved, target


def apply_deposit(goal: SavingsGoal, amount: float) -> float:
    """Return the goal's balance after adding ``amount``.

    Raises:
        ValidationError: If the amount is not positive.
    """
    amount = float(amount)
    if amount <= 0:
        raise ValidationError(f"Deposit amount must be positive, got {amount:g}")
    return float(goal.current_amount) + amount
