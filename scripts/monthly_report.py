#!/usr/bin/env python3
"""Print a month's totals, category breakdowns and budget statuses."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from finance_tracker import FinanceLedger, LedgerStore
from finance_tracker.budgets import summarize_statuses
from finance_tracker.savings import savings_progress, savings_totals


def main(month: Optional[str] = None, ledger_dir: Optional[str] = None) -> None:
    ledger = FinanceLedger(LedgerStore(ledger_dir), current_month=month)
    stats = ledger.monthly_stats()

    print(f"Month: {ledger.current_month}")
    print(f"  Income:      {stats.total_income:12.2f}")
    print(f"  Expenses:    {stats.total_expenses:12.2f}")
    print(f"  Investments: {stats.total_investments:12.2f}")
    print(f"  Net profit:  {stats.net_profit:12.2f}")

    for title, breakdown in (('Expenses by category', stats.category_breakdown),
                             ('Income by category', stats.income_breakdown)):
        if not breakdown:
            continue
        print(f"\n{title}:")
        for share in breakdown:
            name, _, _ = ledger.category_display(share.category_id)
            print(f"  {name:<20} {share.amount:12.2f} {share.percentage:6.1f}%")

    evaluations = ledger.budget_status()
    if evaluations:
        print("\nBudgets:")
        for evaluation in evaluations:
            name, _, _ = ledger.category_display(evaluation.category_id)
            print(
                f"  {name:<20} {evaluation.spent:10.2f} / {evaluation.limit:10.2f}"
                f" {evaluation.percentage:5.0f}%  {evaluation.status}"
            )
        counts = summarize_statuses(evaluations)
        print("  " + ", ".join(f"{status}: {count}" for status, count in counts.items()))

    if ledger.savings_goals:
        saved, target = savings_totals(ledger.savings_goals)
        print(f"\nSavings goals ({saved:.2f} of {target:.2f}):")
        for goal in ledger.savings_goals:
            progress = savings_progress(goal)
            print(f"  {goal.name:<20} {progress.percentage:5.0f}%  remaining {progress.remaining:10.2f}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show monthly ledger statistics.')
    parser.add_argument('--month', help='Period as YYYY-MM (defaults to the current month)')
    parser.add_argument('--ledger-dir', help='Directory holding the ledger tables')
    parser.add_argument('--verbose', action='store_true', help='Log storage warnings')
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    main(month=args.month, ledger_dir=args.ledger_dir)
