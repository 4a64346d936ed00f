"""Income distribution across wallets.

An income source splits incoming money into wallets by percentage.  The
split is advisory: nothing is posted automatically, the wallet balances
come only from the wallet movements the user records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Union

import numpy as np

from .analytics import month_bounds
from .errors import DistributionError
from .models import IncomeDistribution, Wallet, WalletTransaction


@dataclass
class WalletMonthStats:
    wallet: Wallet
    credits: float
    debits: float

    @property
    def balance(self) -> float:
        return self.credits - self.debits

    @property
    def usage_percentage(self) -> float:
        return self.debits / self.credits * 100 if self.credits > 0 else 0.0


def active_distributions(distributions: Iterable[IncomeDistribution]) -> List[IncomeDistribution]:
    """Keep only the entries with a positive percentage."""
    return [d for d in distributions if d.percentage > 0]


def validate_distribution(percentages: Sequence[Union[int, float]]) -> bool:
    """Check that the positive percentages add up to exactly 100.

    Example:
        >>> validate_distribution([30, 20, 50])
        True
        >>> validate_distribution([30, 20, 40, 0])
        False
    """
    return sum(p for p in percentages if p > 0) == 100


def ensure_valid_distribution(distributions: Iterable[IncomeDistribution]) -> List[IncomeDistribution]:
    """Return the active distributions or raise if they do not sum to 100.

    Raises:
        DistributionError: If the active percentages do not add up to 100.
    """
    active = active_distributions(distributions)
    percentages = [d.percentage for d in active]
    if not validate_distribution(percentages):
        raise DistributionError(sum(percentages))
    return active


def split_income(amount: float, distributions: Iterable[IncomeDistribution]) -> Dict[str, float]:
    """Suggested amount per wallet for an income of ``amount``."""
    active = active_distributions(distributions)
    if not active:
        return {}
    shares = np.array([d.percentage for d in active], dtype=float) / 100.0 * float(amount)
    return {d.wallet_id: float(share) for d, share in zip(active, np.round(shares, 2))}


def wallet_month_stats(
    wallets: Iterable[Wallet],
    wallet_transactions: Iterable[WalletTransaction],
    period: str,
) -> List[WalletMonthStats]:
    """Credits, debits and balance of every wallet within one month."""
    start, end = month_bounds(period)
    start_text, end_text = start.isoformat(), end.isoformat()
    credits: Dict[str, float] = {}
    debits: Dict[str, float] = {}
    for wt in wallet_transactions:
        day = wt.date[:10]
        if not start_text <= day <= end_text:
            continue
        bucket = credits if wt.type == 'credit' else debits
        bucket[wt.wallet_id] = bucket.get(wt.wallet_id, 0.0) + float(wt.amount)
    return [
        WalletMonthStats(
            wallet=wallet,
            credits=credits.get(wallet.id, 0.0),
            debits=debits.get(wallet.id, 0.0),
        )
        for wallet in wallets
    ]
